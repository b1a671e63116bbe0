from __future__ import annotations

import json
from pathlib import Path

import pytest

from equality_insights.io.country_meta import load_country_meta, parse_country_meta

META = [
    {"iso3": "FRA", "iso2": "FR", "name": "France", "region": "Europe"},
    {"iso3": "DEU", "iso2": "DE", "name": "Germany", "region": "Europe"},
    {"iso3": "JPN", "iso2": "JP", "name": "Japan", "region": "Asia"},
    {"iso3": "XKX"},
]


def test_lookup_by_iso3_or_iso2_ignores_case() -> None:
    directory = parse_country_meta(META)

    assert len(directory) == 4
    assert directory.get("FRA").name == "France"
    assert directory.get("fr").iso3 == "FRA"
    assert directory.get(" jpn ").region == "Asia"
    assert directory.get("ZZZ") is None
    assert directory.display_name("DEU") == "Germany"
    assert directory.display_name("ZZZ") == "ZZZ"


def test_missing_fields_fall_back_to_code_and_default_region() -> None:
    directory = parse_country_meta(META)
    kosovo = directory.get("XKX")

    assert kosovo.name == "XKX"
    assert kosovo.iso2 is None
    assert kosovo.region == "Other"


def test_regions_group_countries_by_name() -> None:
    directory = parse_country_meta(META)

    assert directory.regions() == ["Asia", "Europe", "Other"]
    grouped = directory.by_region()
    assert [country.name for country in grouped["Europe"]] == ["France", "Germany"]
    assert [country.iso3 for country in grouped["Asia"]] == ["JPN"]


@pytest.mark.parametrize(
    "payload",
    [
        {"iso3": "FRA"},
        [{"name": "Nowhere"}],
        ["FRA"],
    ],
)
def test_invalid_metadata_is_rejected(payload) -> None:
    with pytest.raises(ValueError):
        parse_country_meta(payload)


def test_load_country_meta_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "countries.json"
    path.write_text(json.dumps(META), encoding="utf-8")

    directory = load_country_meta(path)
    assert directory is not None
    assert directory.get("DE").name == "Germany"
    assert load_country_meta(None) is None
    assert load_country_meta("") is None
