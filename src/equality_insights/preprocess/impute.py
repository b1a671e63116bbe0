from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from equality_insights.config import METRIC_FIELDS, ImputationConfig

LOGGER = logging.getLogger(__name__)


def raw_column(metric: str) -> str:
    return f"{metric}_raw"


def filled_column(metric: str) -> str:
    return f"{metric}_filled"


def forward_fill(
    df: pd.DataFrame,
    metrics: Iterable[str],
    sentinel: float | None = None,
) -> pd.DataFrame:
    """Carry each entity's last known value forward through later gaps.

    Rows keep their input order. The parsed value is preserved in ``<metric>_raw``
    and ``<metric>_filled`` marks values that came from an earlier period. An
    existing raw column is never overwritten, so re-running on output is a no-op.
    """
    working = df.copy()
    enabled = set(metrics)
    ordered_index = working.sort_values(["entity_code", "period"], kind="mergesort").index
    entity_keys = working.loc[ordered_index, "entity_code"]

    for metric in METRIC_FIELDS:
        if metric not in working.columns:
            continue
        if raw_column(metric) not in working.columns:
            working[raw_column(metric)] = working[metric]
        raw = working[raw_column(metric)]

        if metric not in enabled:
            working[metric] = raw
            working[filled_column(metric)] = False
            continue

        source = raw if sentinel is None else raw.mask(raw == sentinel)
        filled = source.loc[ordered_index].groupby(entity_keys, sort=False).ffill()
        working[metric] = filled.reindex(working.index)
        working[filled_column(metric)] = source.isna() & working[metric].notna()

        n_filled = int(working[filled_column(metric)].sum())
        if n_filled:
            LOGGER.debug("Forward-filled %d values for %s", n_filled, metric)
    return working


def impute_scores(df: pd.DataFrame, config: ImputationConfig) -> pd.DataFrame:
    return forward_fill(
        df,
        metrics=config.enabled_metrics(),
        sentinel=config.missing_sentinel,
    )
