from __future__ import annotations

import itertools
from types import MappingProxyType

import pytest

from equality_insights.config import METRIC_FIELDS, SeverityScaleConfig, TrendConfig
from equality_insights.dataset import ScoreRow
from equality_insights.errors import ConfigurationError
from equality_insights.trends import (
    SeverityScale,
    Trend,
    TrendComparator,
    comparators_from_config,
    row_trends,
    severity_from_score,
)


def _row(period: int, **values: float | None) -> ScoreRow:
    full = {metric: values.get(metric) for metric in METRIC_FIELDS}
    return ScoreRow(
        entity_code="FRA",
        period=period,
        values=MappingProxyType(full),
        raw_values=MappingProxyType(dict(full)),
    )


def test_higher_is_better_trend() -> None:
    comparator = TrendComparator()

    assert comparator.compare(60.0, 55.0) is Trend.improved
    assert comparator.compare(50.0, 55.0) is Trend.worsened
    assert comparator.compare(55.0, 55.0) is Trend.unchanged
    assert comparator.compare(None, 55.0) is Trend.unchanged
    assert comparator.compare(55.0, None) is Trend.unchanged
    assert comparator.compare(float("nan"), 55.0) is Trend.unchanged


def test_closer_to_zero_is_better_trend() -> None:
    comparator = TrendComparator("closer_to_zero_is_better")

    assert comparator.compare(-1.0, -3.0) is Trend.improved
    assert comparator.compare(2.0, -3.0) is Trend.improved
    assert comparator.compare(4.0, -3.0) is Trend.worsened
    assert comparator.compare(-3.0, 3.0) is Trend.unchanged


def test_trend_is_never_improved_in_both_directions() -> None:
    comparator = TrendComparator()
    samples = [None, -5.0, 0.0, 29.999, 30.0, 60.0, 100.0]
    for a, b in itertools.product(samples, repeat=2):
        assert not (
            comparator.compare(a, b) is Trend.improved and comparator.compare(b, a) is Trend.improved
        )


def test_unknown_direction_fails_at_construction() -> None:
    with pytest.raises(ConfigurationError, match="lower_is_better"):
        TrendComparator("lower_is_better")


def test_row_trends_uses_per_metric_overrides() -> None:
    config = TrendConfig(overrides={"total_score": "closer_to_zero_is_better"})
    comparators = comparators_from_config(config)

    current = _row(2021, econ_score=50.0, social_score=40.0, total_score=-1.0)
    prior = _row(2020, econ_score=45.0, social_score=40.0, total_score=-5.0)

    trends = row_trends(current, prior, comparators)
    assert trends == {
        "econ_score": Trend.improved,
        "social_score": Trend.unchanged,
        "physical_score": Trend.unchanged,
        "total_score": Trend.improved,
    }
    assert set(row_trends(current, None, comparators).values()) == {Trend.unchanged}


def test_severity_boundaries_are_inclusive_on_lower_bound() -> None:
    scale = SeverityScale(boundaries=(30, 60), tiers=("high", "middle", "low"))

    assert scale.classify(-10.0) == "high"
    assert scale.classify(29.999) == "high"
    assert scale.classify(30.0) == "middle"
    assert scale.classify(59.999) == "middle"
    assert scale.classify(60.0) == "low"
    assert scale.classify(1000.0) == "low"


def test_severity_thresholds_are_passed_in_per_consumer() -> None:
    assert severity_from_score(60.0, [30, 60], ["high", "middle", "low"]) == "low"
    assert severity_from_score(60.0, [60, 75], ["high", "middle", "low"]) == "middle"
    assert severity_from_score(75.0, [60, 75], ["high", "middle", "low"]) == "low"


@pytest.mark.parametrize(
    ("boundaries", "tiers"),
    [
        ((), ("low",)),
        ((60, 30), ("high", "middle", "low")),
        ((30, 30), ("high", "middle", "low")),
        ((30, 60), ("high", "low")),
        ((30, float("inf")), ("high", "middle", "low")),
    ],
)
def test_invalid_severity_scale_fails_at_construction(boundaries, tiers) -> None:
    with pytest.raises(ConfigurationError):
        SeverityScale(boundaries=boundaries, tiers=tiers)


def test_severity_scale_from_config() -> None:
    scale = SeverityScale.from_config(
        SeverityScaleConfig(boundaries=[60, 75], tiers=["high", "middle", "low"])
    )
    assert scale.boundaries == (60.0, 75.0)
    assert scale.classify(74.0) == "middle"


def test_classify_rejects_missing_score() -> None:
    scale = SeverityScale(boundaries=(30,), tiers=("high", "low"))
    with pytest.raises(ValueError):
        scale.classify(float("nan"))
