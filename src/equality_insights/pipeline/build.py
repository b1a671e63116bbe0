from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from equality_insights.config import AppConfig
from equality_insights.dataset import IndexedDataset, build_index
from equality_insights.io.read import read_text
from equality_insights.io.schema import enforce_unique_keys, normalize_records
from equality_insights.io.tabular import parse_delimited
from equality_insights.preprocess.impute import impute_scores

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    dataset: IndexedDataset
    frame: pd.DataFrame
    rows_read: int
    rows_dropped: int
    rows_deduplicated: int


def prepare_scores_frame(text: str, config: AppConfig) -> tuple[pd.DataFrame, int, int, int]:
    records = parse_delimited(text)
    if not records:
        LOGGER.warning("Scores asset has no data rows")
    header, body = (records[0], records[1:]) if records else ([], [])

    normalized = normalize_records(header=header, records=body, columns=config.columns)
    unique = enforce_unique_keys(normalized.frame, policy=config.dataset.on_duplicate)
    imputed = impute_scores(unique, config.imputation)
    return (
        imputed,
        normalized.rows_read,
        normalized.rows_dropped,
        len(normalized.frame) - len(unique),
    )


def build_dataset_from_text(text: str, config: AppConfig) -> BuildResult:
    """Parse, normalize, impute and index one scores asset."""
    frame, rows_read, rows_dropped, rows_deduplicated = prepare_scores_frame(text, config)
    dataset = build_index(frame)
    LOGGER.info(
        "Indexed %d rows for %d entities (%d read, %d dropped, %d duplicates removed)",
        len(dataset),
        len(dataset.entities()),
        rows_read,
        rows_dropped,
        rows_deduplicated,
    )
    return BuildResult(
        dataset=dataset,
        frame=frame,
        rows_read=rows_read,
        rows_dropped=rows_dropped,
        rows_deduplicated=rows_deduplicated,
    )


def load_dataset(path: str | Path, config: AppConfig) -> BuildResult:
    return build_dataset_from_text(read_text(path), config)
