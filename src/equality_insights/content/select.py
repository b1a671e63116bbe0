from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping, Sequence

import numpy as np

from equality_insights.content.bank import CATEGORIES, ContentBank, ContentEntry
from equality_insights.trends import SeverityScale

# Tie-break order when two categories share the lowest score.
CATEGORY_PRECEDENCE: tuple[str, ...] = CATEGORIES

CATEGORY_METRICS: dict[str, str] = {
    "economic": "econ_score",
    "social": "social_score",
    "physical": "physical_score",
}


@dataclass(frozen=True)
class Selection:
    category: str | None
    severity: str | None
    entries: list[ContentEntry] = field(default_factory=list)

    @property
    def texts(self) -> list[str]:
        return [entry.text for entry in self.entries]


def select_content(
    bank: ContentBank,
    category: str | None,
    severity: str,
    k: int,
    rng: np.random.Generator,
) -> list[ContentEntry]:
    """Pick up to ``k`` distinct entries matching category and severity, in random order."""
    pool = bank.pool(category, severity)
    size = max(0, min(int(k), len(pool)))
    if size == 0:
        return []
    order = rng.permutation(len(pool))[:size]
    return [pool[int(position)] for position in order]


def _is_missing(value: float | None) -> bool:
    return value is None or math.isnan(value)


def worst_category(
    scores: Mapping[str, float | None],
    precedence: Sequence[str] = CATEGORY_PRECEDENCE,
) -> str | None:
    """Lowest-scoring category; ``None`` when any category score is missing."""
    if any(_is_missing(scores.get(category)) for category in precedence):
        return None
    worst: str | None = None
    for category in precedence:
        # Strict comparison keeps the earlier category on ties.
        if worst is None or scores[category] < scores[worst]:
            worst = category
    return worst


def category_scores(values: Mapping[str, float | None]) -> dict[str, float | None]:
    return {category: values.get(metric) for category, metric in CATEGORY_METRICS.items()}


def build_selection(
    scores: Mapping[str, float | None],
    bank: ContentBank,
    scale: SeverityScale,
    k: int,
    rng: np.random.Generator,
) -> Selection:
    """Target the worst category, classify its score, then draw content for that tier."""
    category = worst_category(scores)
    if category is None:
        return Selection(category=None, severity=None)
    severity = scale.classify(float(scores[category]))
    return Selection(
        category=category,
        severity=severity,
        entries=select_content(bank, category, severity, k, rng),
    )