from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

METRIC_FIELDS = ("econ_score", "social_score", "physical_score", "total_score")

TrendDirection = Literal["higher_is_better", "closer_to_zero_is_better"]
DuplicatePolicy = Literal["error", "keep_first"]


class ColumnsConfig(BaseModel):
    """Accepted header spellings per canonical field, in priority order."""

    entity_code: list[str] = Field(default_factory=lambda: ["country code", "country"])
    period: list[str] = Field(default_factory=lambda: ["year"])
    econ_score: list[str] = Field(default_factory=lambda: ["econ score"])
    social_score: list[str] = Field(default_factory=lambda: ["social score"])
    physical_score: list[str] = Field(default_factory=lambda: ["physical score"])
    total_score: list[str] = Field(default_factory=lambda: ["total score"])

    def spellings(self) -> dict[str, list[str]]:
        return {
            "entity_code": list(self.entity_code),
            "period": list(self.period),
            **{metric: list(getattr(self, metric)) for metric in METRIC_FIELDS},
        }


class ImputationConfig(BaseModel):
    econ_score: bool = True
    social_score: bool = True
    physical_score: bool = True
    total_score: bool = True
    missing_sentinel: float | None = None

    def enabled_metrics(self) -> list[str]:
        return [metric for metric in METRIC_FIELDS if getattr(self, metric)]


class TrendConfig(BaseModel):
    default_direction: TrendDirection = "higher_is_better"
    overrides: dict[str, TrendDirection] = Field(default_factory=dict)

    def direction_for(self, metric: str) -> TrendDirection:
        return self.overrides.get(metric, self.default_direction)


class SeverityScaleConfig(BaseModel):
    boundaries: list[float]
    tiers: list[str]


class SeverityConfig(BaseModel):
    recommendations: SeverityScaleConfig = Field(
        default_factory=lambda: SeverityScaleConfig(
            boundaries=[30, 60], tiers=["high", "middle", "low"]
        )
    )
    actions: SeverityScaleConfig = Field(
        default_factory=lambda: SeverityScaleConfig(
            boundaries=[60, 75], tiers=["high", "middle", "low"]
        )
    )


class SelectionConfig(BaseModel):
    recommendations_k: int = Field(default=2, ge=0)
    actions_k: int = Field(default=2, ge=0)
    random_seed: int | None = Field(default=None, ge=0)
    recommendations_bank: str | None = None
    actions_bank: str | None = None


class DatasetConfig(BaseModel):
    scores_path: str | None = None
    country_meta_path: str | None = None
    on_duplicate: DuplicatePolicy = "error"
    provisional_periods: list[int] = Field(default_factory=list)


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    imputation: ImputationConfig = Field(default_factory=ImputationConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    severity: SeverityConfig = Field(default_factory=SeverityConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.dataset.scores_path = _resolve_optional_path(
        config.dataset.scores_path or os.getenv("EQUALITY_INSIGHTS_SCORES_PATH"),
        base_dir,
    )
    config.dataset.country_meta_path = _resolve_optional_path(
        config.dataset.country_meta_path,
        base_dir,
    )
    config.selection.recommendations_bank = _resolve_optional_path(
        config.selection.recommendations_bank,
        base_dir,
    )
    config.selection.actions_bank = _resolve_optional_path(
        config.selection.actions_bank,
        base_dir,
    )
    return config
