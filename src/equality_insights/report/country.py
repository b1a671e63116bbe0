from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np

from equality_insights.config import METRIC_FIELDS, AppConfig
from equality_insights.content.bank import (
    SEVERITY_TIERS,
    ContentBank,
    actions_bank,
    recommendations_bank,
)
from equality_insights.content.select import Selection, build_selection, category_scores
from equality_insights.dataset import IndexedDataset
from equality_insights.errors import ConfigurationError
from equality_insights.io.country_meta import CountryDirectory
from equality_insights.trends import (
    SeverityScale,
    TrendComparator,
    comparators_from_config,
    row_trends,
)


@dataclass(frozen=True)
class CountryReport:
    entity_code: str
    display_name: str
    region: str | None
    period: int
    scores: dict[str, float | None]
    filled: list[str]
    trends: dict[str, str]
    worst_category: str | None
    severity: str | None
    recommendations: list[str] = field(default_factory=list)
    action_severity: str | None = None
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def make_rng(seed: int | None = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def _require_bank_tiers(scale: SeverityScale, *, consumer: str) -> SeverityScale:
    unknown = [tier for tier in scale.tiers if tier not in SEVERITY_TIERS]
    if unknown:
        raise ConfigurationError(
            f"Severity tiers for {consumer} must be drawn from {list(SEVERITY_TIERS)}, "
            f"got {unknown}"
        )
    return scale


class CountryReportBuilder:
    """Assembles per-country, per-year output from an indexed dataset.

    Trend comparators and severity scales are built here so invalid configuration
    fails when the builder is created rather than on the first query.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        recommendations: ContentBank | None = None,
        actions: ContentBank | None = None,
        directory: CountryDirectory | None = None,
    ) -> None:
        self.comparators: dict[str, TrendComparator] = comparators_from_config(config.trend)
        self.recommendation_scale = _require_bank_tiers(
            SeverityScale.from_config(config.severity.recommendations), consumer="recommendations"
        )
        self.action_scale = _require_bank_tiers(
            SeverityScale.from_config(config.severity.actions), consumer="actions"
        )
        if recommendations is None:
            recommendations = recommendations_bank(config.selection.recommendations_bank)
        if actions is None:
            actions = actions_bank(config.selection.actions_bank)
        self.recommendations = recommendations
        self.actions = actions
        self.recommendations_k = config.selection.recommendations_k
        self.actions_k = config.selection.actions_k
        self.directory = directory

    def recommend(self, scores: dict[str, float | None], rng: np.random.Generator) -> Selection:
        return build_selection(
            scores, self.recommendations, self.recommendation_scale, self.recommendations_k, rng
        )

    def suggest_actions(
        self, scores: dict[str, float | None], rng: np.random.Generator
    ) -> Selection:
        return build_selection(scores, self.actions, self.action_scale, self.actions_k, rng)

    def build(
        self,
        dataset: IndexedDataset,
        entity_code: str,
        period: int,
        rng: np.random.Generator,
    ) -> CountryReport | None:
        row = dataset.get(entity_code, period)
        if row is None:
            return None

        prior = dataset.previous(entity_code, period)
        trends = row_trends(row, prior, self.comparators)
        scores = category_scores(row.values)
        recommendation = self.recommend(scores, rng)
        action = self.suggest_actions(scores, rng)

        display_name = entity_code
        country = None
        if self.directory is not None:
            display_name = self.directory.display_name(entity_code)
            country = self.directory.get(entity_code)
        return CountryReport(
            entity_code=entity_code,
            display_name=display_name,
            region=country.region if country is not None else None,
            period=period,
            scores={metric: row.value(metric) for metric in METRIC_FIELDS},
            filled=[metric for metric in METRIC_FIELDS if row.was_filled(metric)],
            trends={metric: trend.value for metric, trend in trends.items()},
            worst_category=recommendation.category,
            severity=recommendation.severity,
            recommendations=recommendation.texts,
            action_severity=action.severity,
            actions=action.texts,
        )
