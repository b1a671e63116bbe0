from __future__ import annotations

import math
from collections.abc import Callable, Collection, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

import pandas as pd

from equality_insights.config import METRIC_FIELDS
from equality_insights.errors import DuplicateRowError
from equality_insights.io.schema import duplicate_keys
from equality_insights.preprocess.impute import filled_column, raw_column

PeriodFilter = Collection[int] | Callable[[int], bool]


@dataclass(frozen=True)
class ScoreRow:
    entity_code: str
    period: int
    values: Mapping[str, float | None]
    raw_values: Mapping[str, float | None]
    filled: frozenset[str] = frozenset()

    def value(self, metric: str) -> float | None:
        return self.values.get(metric)

    def was_filled(self, metric: str) -> bool:
        return metric in self.filled

    def as_dict(self) -> dict[str, object]:
        return {
            "entity_code": self.entity_code,
            "period": self.period,
            **{metric: self.values.get(metric) for metric in METRIC_FIELDS},
        }


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _is_excluded(period: int, exclude: PeriodFilter | None) -> bool:
    if exclude is None:
        return False
    if callable(exclude):
        return bool(exclude(period))
    return period in exclude


class IndexedDataset:
    """Read-only ``entity_code -> period -> ScoreRow`` lookup."""

    def __init__(self, index: Mapping[str, Mapping[int, ScoreRow]]) -> None:
        self._index = MappingProxyType(
            {entity: MappingProxyType(dict(periods)) for entity, periods in index.items()}
        )
        self._row_count = sum(len(periods) for periods in self._index.values())

    def __len__(self) -> int:
        return self._row_count

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        entity, period = key
        return self.get(entity, period) is not None

    def get(self, entity_code: str, period: int) -> ScoreRow | None:
        periods = self._index.get(entity_code)
        if periods is None:
            return None
        return periods.get(period)

    def previous(self, entity_code: str, period: int) -> ScoreRow | None:
        """Row for the year immediately before ``period``, if present."""
        return self.get(entity_code, period - 1)

    def entities(self) -> list[str]:
        return sorted(self._index)

    def years_available(
        self,
        entity_code: str,
        *,
        descending: bool = False,
        exclude: PeriodFilter | None = None,
    ) -> list[int]:
        periods = self._index.get(entity_code, {})
        years = {period for period in periods if not _is_excluded(period, exclude)}
        return sorted(years, reverse=descending)

    def latest_period(self, entity_code: str, exclude: PeriodFilter | None = None) -> int | None:
        years = self.years_available(entity_code, descending=True, exclude=exclude)
        return years[0] if years else None

    def rows(self) -> Iterator[ScoreRow]:
        for entity in self.entities():
            periods = self._index[entity]
            for period in sorted(periods):
                yield periods[period]


def row_from_record(record: Mapping[str, object]) -> ScoreRow:
    values: dict[str, float | None] = {}
    raw_values: dict[str, float | None] = {}
    filled: set[str] = set()
    for metric in METRIC_FIELDS:
        values[metric] = _optional_float(record.get(metric))
        raw_values[metric] = _optional_float(record.get(raw_column(metric), record.get(metric)))
        if record.get(filled_column(metric)):
            filled.add(metric)
    return ScoreRow(
        entity_code=str(record["entity_code"]),
        period=int(record["period"]),
        values=MappingProxyType(values),
        raw_values=MappingProxyType(raw_values),
        filled=frozenset(filled),
    )


def build_index(df: pd.DataFrame) -> IndexedDataset:
    """Build the two-level lookup from normalized, imputed rows."""
    keys = duplicate_keys(df)
    if keys:
        raise DuplicateRowError(keys)

    index: dict[str, dict[int, ScoreRow]] = {}
    records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    for record in records:
        row = row_from_record(record)
        index.setdefault(row.entity_code, {})[row.period] = row
    return IndexedDataset(index)
