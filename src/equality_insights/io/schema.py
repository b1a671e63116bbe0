from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from equality_insights.config import METRIC_FIELDS, ColumnsConfig, DuplicatePolicy
from equality_insights.errors import DuplicateRowError

LOGGER = logging.getLogger(__name__)

HEADER_SEPARATOR_RE = re.compile(r"[\s_\-]+")
KEY_COLUMNS = ["entity_code", "period"]
PERIOD_BOUNDS = np.iinfo(np.int64)


@dataclass(frozen=True)
class CanonicalColumns:
    entity_code: str = "entity_code"
    period: str = "period"
    econ_score: str = "econ_score"
    social_score: str = "social_score"
    physical_score: str = "physical_score"
    total_score: str = "total_score"


@dataclass(frozen=True)
class NormalizeResult:
    frame: pd.DataFrame
    rows_read: int
    rows_dropped: int
    column_indices: dict[str, int | None] = field(default_factory=dict)


def normalize_header(name: str) -> str:
    """Lower-case a header and strip separators so 'Econ Score' == 'econ_score'."""
    return HEADER_SEPARATOR_RE.sub("", name.strip().lower())


def resolve_column_indices(header: list[str], columns: ColumnsConfig) -> dict[str, int | None]:
    lookup: dict[str, int] = {}
    for position, name in enumerate(header):
        # First occurrence wins when a header is repeated.
        lookup.setdefault(normalize_header(name), position)

    resolved: dict[str, int | None] = {}
    for canonical, spellings in columns.spellings().items():
        resolved[canonical] = None
        for spelling in spellings:
            match = lookup.get(normalize_header(spelling))
            if match is not None:
                resolved[canonical] = match
                break
    return resolved


def _field(record: list[str], index: int | None) -> str:
    if index is None or index >= len(record):
        return ""
    return record[index]


def _parse_period(value: str) -> int | None:
    text = value.strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    period = int(number)
    # Stored as int64; anything outside that range is not a usable period.
    if not PERIOD_BOUNDS.min <= period <= PERIOD_BOUNDS.max:
        return None
    return period


def normalize_records(
    header: list[str],
    records: list[list[str]],
    columns: ColumnsConfig,
) -> NormalizeResult:
    """Map raw records onto canonical columns, dropping rows without a key."""
    indices = resolve_column_indices(header, columns)
    missing_keys = [canonical for canonical in KEY_COLUMNS if indices[canonical] is None]
    if records and missing_keys:
        LOGGER.warning("No column matched %s; every row will be dropped", ", ".join(missing_keys))
    unresolved = [metric for metric in METRIC_FIELDS if indices[metric] is None]
    if records and unresolved:
        LOGGER.info("Metric columns not found, treated as missing: %s", ", ".join(unresolved))

    entity_codes: list[str] = []
    periods: list[int] = []
    metric_text: dict[str, list[str]] = {metric: [] for metric in METRIC_FIELDS}
    dropped = 0
    for record in records:
        entity_code = _field(record, indices["entity_code"]).strip()
        period = _parse_period(_field(record, indices["period"]))
        if not entity_code or period is None:
            dropped += 1
            continue
        entity_codes.append(entity_code)
        periods.append(period)
        for metric in METRIC_FIELDS:
            metric_text[metric].append(_field(record, indices[metric]).strip())

    frame = pd.DataFrame(
        {
            CanonicalColumns.entity_code: pd.Series(entity_codes, dtype="object"),
            CanonicalColumns.period: pd.Series(periods, dtype="int64"),
        }
    )
    for metric in METRIC_FIELDS:
        values = pd.to_numeric(pd.Series(metric_text[metric], dtype="object"), errors="coerce")
        values = values.astype("float64")
        # inf/-inf parse successfully but are not usable scores.
        frame[metric] = values.where(np.isfinite(values))

    if dropped:
        LOGGER.info("Dropped %d of %d rows missing an entity code or period", dropped, len(records))
    return NormalizeResult(
        frame=frame,
        rows_read=len(records),
        rows_dropped=dropped,
        column_indices=indices,
    )


def duplicate_keys(frame: pd.DataFrame) -> list[tuple[str, int]]:
    mask = frame.duplicated(subset=KEY_COLUMNS, keep=False)
    if not mask.any():
        return []
    keys = frame.loc[mask, KEY_COLUMNS].drop_duplicates()
    return [(str(entity), int(period)) for entity, period in keys.itertuples(index=False)]


def enforce_unique_keys(frame: pd.DataFrame, policy: DuplicatePolicy = "error") -> pd.DataFrame:
    """Apply the duplicate (entity, period) policy; last-write-wins is never used."""
    keys = duplicate_keys(frame)
    if not keys:
        return frame
    if policy == "error":
        raise DuplicateRowError(keys)
    if policy == "keep_first":
        deduped = frame.drop_duplicates(subset=KEY_COLUMNS, keep="first").reset_index(drop=True)
        LOGGER.warning(
            "Dropped %d duplicate rows across %d (entity, period) keys; kept first occurrence",
            len(frame) - len(deduped),
            len(keys),
        )
        return deduped
    raise ValueError(f"Unsupported duplicate policy: {policy}")
