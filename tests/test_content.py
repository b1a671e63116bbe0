from __future__ import annotations

from collections import Counter
from pathlib import Path

import numpy as np
import pytest
import yaml

from equality_insights.content.bank import (
    ContentBank,
    ContentEntry,
    actions_bank,
    load_content_bank,
    parse_content_bank,
    recommendations_bank,
)
from equality_insights.content.select import (
    build_selection,
    category_scores,
    select_content,
    worst_category,
)
from equality_insights.trends import SeverityScale

RECOMMENDATION_SCALE = SeverityScale(boundaries=(30, 60), tiers=("high", "middle", "low"))
ACTION_SCALE = SeverityScale(boundaries=(60, 75), tiers=("high", "middle", "low"))


def _bank(*entries: ContentEntry) -> ContentBank:
    return ContentBank(name="test", entries=tuple(entries))


def _entry(entry_id: str, category: str | None = "economic", severity: str = "high") -> ContentEntry:
    return ContentEntry(id=entry_id, category=category, severity=severity, text=f"text {entry_id}")


def test_builtin_banks_cover_every_category_and_tier() -> None:
    recommendations = recommendations_bank()
    actions = actions_bank()

    assert len(recommendations) == 27
    assert len(actions) == 17
    for category in ("economic", "social", "physical"):
        for severity in ("low", "middle", "high"):
            assert len(recommendations.pool(category, severity)) == 3
            assert actions.pool(category, severity)
    assert all(entry.category is None for entry in actions.entries)


def test_select_content_clamps_to_pool_without_duplicates() -> None:
    bank = _bank(_entry("a"), _entry("b"), _entry("c", severity="low"), _entry("d", "social"))
    picked = select_content(bank, "economic", "high", 5, np.random.default_rng(0))

    assert len(picked) == 2
    assert {entry.id for entry in picked} == {"a", "b"}


def test_select_content_returns_empty_for_empty_pool_or_zero_k() -> None:
    bank = _bank(_entry("a"))
    rng = np.random.default_rng(0)

    assert select_content(bank, "social", "high", 3, rng) == []
    assert select_content(bank, "economic", "high", 0, rng) == []
    assert select_content(bank, "economic", "high", -2, rng) == []


def test_select_content_is_reproducible_with_a_seed() -> None:
    bank = _bank(*(_entry(str(i)) for i in range(10)))

    first = select_content(bank, "economic", "high", 3, np.random.default_rng(123))
    second = select_content(bank, "economic", "high", 3, np.random.default_rng(123))
    assert first == second


def test_select_content_picks_each_entry_with_roughly_equal_frequency() -> None:
    bank = _bank(*(_entry(str(i)) for i in range(4)))
    rng = np.random.default_rng(2024)
    counts: Counter[str] = Counter()
    first_position: Counter[str] = Counter()
    trials = 4000

    for _ in range(trials):
        picked = select_content(bank, "economic", "high", 2, rng)
        counts.update(entry.id for entry in picked)
        first_position[picked[0].id] += 1

    expected = trials * 2 / 4
    for entry_id in "0123":
        assert abs(counts[entry_id] - expected) < expected * 0.1
        assert abs(first_position[entry_id] - trials / 4) < trials / 4 * 0.15


def test_worst_category_uses_fixed_precedence_on_ties() -> None:
    assert worst_category({"economic": 50.0, "social": 40.0, "physical": 45.0}) == "social"
    assert worst_category({"physical": 40.0, "social": 40.0, "economic": 41.0}) == "social"
    assert worst_category({"physical": 10.0, "social": 10.0, "economic": 10.0}) == "economic"
    assert worst_category({"economic": 10.0, "social": None, "physical": 5.0}) is None
    assert worst_category({"economic": 10.0, "social": float("nan"), "physical": 5.0}) is None


def test_build_selection_targets_worst_category_and_severity() -> None:
    scores = category_scores({"econ_score": 72.0, "social_score": 45.0, "physical_score": 58.0})
    selection = build_selection(
        scores, recommendations_bank(), RECOMMENDATION_SCALE, 2, np.random.default_rng(1)
    )

    assert selection.category == "social"
    assert selection.severity == "middle"
    assert len(selection.entries) == 2
    assert all(entry.category == "social" and entry.severity == "middle" for entry in selection.entries)
    assert len(selection.texts) == 2


def test_build_selection_for_actions_uses_its_own_scale() -> None:
    scores = {"economic": 74.0, "social": 80.0, "physical": 90.0}
    selection = build_selection(scores, actions_bank(), ACTION_SCALE, 2, np.random.default_rng(1))

    assert selection.severity == "middle"
    assert all(entry.severity == "middle" for entry in selection.entries)


def test_build_selection_without_complete_scores_is_empty() -> None:
    selection = build_selection(
        {"economic": None, "social": 10.0, "physical": 10.0},
        recommendations_bank(),
        RECOMMENDATION_SCALE,
        2,
        np.random.default_rng(1),
    )
    assert selection.category is None
    assert selection.severity is None
    assert selection.entries == []


def test_parse_content_bank_validates_entries() -> None:
    with pytest.raises(ValueError, match="entries"):
        parse_content_bank({}, name="x")
    with pytest.raises(ValueError, match="unknown category"):
        parse_content_bank(
            {"entries": [{"id": "a", "category": "legal", "severity": "low", "text": "t"}]},
            name="x",
        )
    with pytest.raises(ValueError, match="unknown severity"):
        parse_content_bank({"entries": [{"id": "a", "severity": "severe", "text": "t"}]}, name="x")
    with pytest.raises(ValueError, match="duplicate"):
        parse_content_bank(
            {
                "entries": [
                    {"id": "a", "severity": "low", "text": "t"},
                    {"id": "a", "severity": "high", "text": "u"},
                ]
            },
            name="x",
        )


def test_load_content_bank_from_file(tmp_path: Path) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "schema_version": 1,
                "entries": [
                    {"id": "x1", "category": "physical", "severity": "low", "text": "Walk more."}
                ],
            }
        ),
        encoding="utf-8",
    )

    bank = load_content_bank(str(path))
    assert bank.name == "custom"
    assert bank.pool("physical", "low")[0].text == "Walk more."
    assert recommendations_bank(str(path)) is bank
