from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Sequence

from equality_insights.config import METRIC_FIELDS, SeverityScaleConfig, TrendConfig
from equality_insights.dataset import ScoreRow
from equality_insights.errors import ConfigurationError

TREND_DIRECTIONS = ("higher_is_better", "closer_to_zero_is_better")


class Trend(str, Enum):
    improved = "improved"
    worsened = "worsened"
    unchanged = "unchanged"


def _is_missing(value: float | None) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


class TrendComparator:
    """Year-over-year direction for one metric framing."""

    def __init__(self, direction: str = "higher_is_better") -> None:
        if direction not in TREND_DIRECTIONS:
            expected = ", ".join(TREND_DIRECTIONS)
            raise ConfigurationError(
                f"Unknown trend direction {direction!r}; expected one of {expected}"
            )
        self.direction = direction

    def _goodness(self, value: float) -> float:
        if self.direction == "closer_to_zero_is_better":
            return -abs(value)
        return value

    def compare(self, current: float | None, prior: float | None) -> Trend:
        if _is_missing(current) or _is_missing(prior):
            return Trend.unchanged
        current_goodness = self._goodness(float(current))
        prior_goodness = self._goodness(float(prior))
        if current_goodness == prior_goodness:
            return Trend.unchanged
        if current_goodness > prior_goodness:
            return Trend.improved
        return Trend.worsened


def comparators_from_config(config: TrendConfig) -> dict[str, TrendComparator]:
    return {metric: TrendComparator(config.direction_for(metric)) for metric in METRIC_FIELDS}


def row_trends(
    row: ScoreRow,
    prior: ScoreRow | None,
    comparators: Mapping[str, TrendComparator],
) -> dict[str, Trend]:
    trends: dict[str, Trend] = {}
    for metric, comparator in comparators.items():
        prior_value = prior.value(metric) if prior is not None else None
        trends[metric] = comparator.compare(row.value(metric), prior_value)
    return trends


@dataclass(frozen=True)
class SeverityScale:
    """Ascending boundaries and the tier label for each band.

    ``tiers[i]`` covers ``[boundaries[i - 1], boundaries[i])``; the first tier is
    unbounded below and the last is unbounded above.
    """

    boundaries: tuple[float, ...]
    tiers: tuple[str, ...]

    def __post_init__(self) -> None:
        boundaries = tuple(float(value) for value in self.boundaries)
        tiers = tuple(str(tier) for tier in self.tiers)
        if not boundaries:
            raise ConfigurationError("Severity scale needs at least one boundary")
        if not all(math.isfinite(value) for value in boundaries):
            raise ConfigurationError("Severity boundaries must be finite numbers")
        if any(lower >= upper for lower, upper in zip(boundaries, boundaries[1:])):
            raise ConfigurationError(
                f"Severity boundaries must be strictly ascending, got {list(boundaries)}"
            )
        if len(tiers) != len(boundaries) + 1:
            raise ConfigurationError(
                f"Severity scale with {len(boundaries)} boundaries needs "
                f"{len(boundaries) + 1} tiers, got {len(tiers)}"
            )
        object.__setattr__(self, "boundaries", boundaries)
        object.__setattr__(self, "tiers", tiers)

    @classmethod
    def from_config(cls, config: SeverityScaleConfig) -> SeverityScale:
        return cls(boundaries=tuple(config.boundaries), tiers=tuple(config.tiers))

    def classify(self, score: float) -> str:
        if _is_missing(score):
            raise ValueError("Cannot classify a missing score")
        for boundary, tier in zip(self.boundaries, self.tiers):
            if score < boundary:
                return tier
        return self.tiers[-1]


def severity_from_score(score: float, boundaries: Sequence[float], tiers: Sequence[str]) -> str:
    return SeverityScale(boundaries=tuple(boundaries), tiers=tuple(tiers)).classify(score)
