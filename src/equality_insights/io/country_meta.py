from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

DEFAULT_REGION = "Other"


@dataclass(frozen=True)
class CountryMeta:
    iso3: str
    iso2: str | None
    name: str
    region: str


class CountryDirectory:
    """Read-only lookup from ISO3/ISO2 codes to display names and regions."""

    def __init__(self, countries: list[CountryMeta]) -> None:
        self._countries = tuple(countries)
        self._by_code: dict[str, CountryMeta] = {}
        for country in self._countries:
            self._by_code.setdefault(country.iso3.upper(), country)
        for country in self._countries:
            if country.iso2:
                self._by_code.setdefault(country.iso2.upper(), country)

    def __len__(self) -> int:
        return len(self._countries)

    def get(self, code: str) -> CountryMeta | None:
        return self._by_code.get(code.strip().upper())

    def display_name(self, code: str) -> str:
        country = self.get(code)
        return country.name if country is not None else code

    def regions(self) -> list[str]:
        return sorted({country.region for country in self._countries})

    def by_region(self) -> dict[str, list[CountryMeta]]:
        grouped: dict[str, list[CountryMeta]] = {}
        for country in sorted(self._countries, key=lambda item: item.name):
            grouped.setdefault(country.region, []).append(country)
        return grouped


def _parse_country(payload: Any, position: int) -> CountryMeta:
    if not isinstance(payload, Mapping):
        raise ValueError(f"country metadata entry {position} must be a mapping/object")
    iso3 = str(payload.get("iso3") or "").strip()
    if not iso3:
        raise ValueError(f"country metadata entry {position} is missing 'iso3'")
    iso2 = str(payload.get("iso2") or "").strip() or None
    name = str(payload.get("name") or "").strip() or iso3
    region = str(payload.get("region") or "").strip() or DEFAULT_REGION
    return CountryMeta(iso3=iso3, iso2=iso2, name=name, region=region)


def parse_country_meta(payload: Any) -> CountryDirectory:
    if not isinstance(payload, list):
        raise ValueError("country metadata must be a JSON list")
    return CountryDirectory([_parse_country(item, position) for position, item in enumerate(payload)])


def load_country_meta(path: str | Path | None) -> CountryDirectory | None:
    if not path:
        return None
    source_path = Path(path).resolve()
    with source_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return parse_country_meta(payload)
