from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable

from equality_insights.config import AppConfig
from equality_insights.dataset import IndexedDataset
from equality_insights.errors import EqualityInsightsError
from equality_insights.io.read import read_text_async
from equality_insights.pipeline.build import BuildResult, build_dataset_from_text

LOGGER = logging.getLogger(__name__)

SourceReader = Callable[[str], Awaitable[str]]


class LoadState(str, Enum):
    empty = "empty"
    loading = "loading"
    ready = "ready"
    failed = "failed"


@dataclass(frozen=True)
class DatasetSnapshot:
    version: int
    source: str
    result: BuildResult

    @property
    def dataset(self) -> IndexedDataset:
        return self.result.dataset


@dataclass(frozen=True)
class LoadOutcome:
    sequence: int
    applied: bool
    state: LoadState
    snapshot: DatasetSnapshot | None = None
    error: str | None = None

    @property
    def superseded(self) -> bool:
        return not self.applied


class DatasetHandle:
    """Owns the current dataset snapshot.

    Each ``load`` takes a sequence number when it starts. A finished load is applied
    only if no later load has been initiated since, so the most recently initiated
    load wins regardless of the order in which reads resolve. The asset read is the
    only await; parsing through indexing runs synchronously once the text arrives.
    """

    def __init__(self, config: AppConfig, reader: SourceReader | None = None) -> None:
        self._config = config
        self._reader = reader or read_text_async
        self._latest_sequence = 0
        self._state = LoadState.empty
        self._snapshot: DatasetSnapshot | None = None
        self._error: str | None = None

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def snapshot(self) -> DatasetSnapshot | None:
        if self._state is not LoadState.ready:
            return None
        return self._snapshot

    def current(self) -> IndexedDataset | None:
        snapshot = self.snapshot
        return snapshot.dataset if snapshot is not None else None

    def _is_latest(self, sequence: int) -> bool:
        return sequence == self._latest_sequence

    def _fail(self, sequence: int, message: str) -> LoadOutcome:
        self._snapshot = None
        self._state = LoadState.failed
        self._error = message
        LOGGER.error("Dataset load %d failed: %s", sequence, message)
        return LoadOutcome(sequence=sequence, applied=True, state=self._state, error=message)

    def _fail_unexpected(self, sequence: int, exc: Exception) -> LoadOutcome:
        LOGGER.exception("Unexpected error in dataset load %d", sequence)
        return self._fail(sequence, f"{type(exc).__name__}: {exc}")

    def _discard(self, sequence: int) -> LoadOutcome:
        LOGGER.info(
            "Discarding dataset load %d; load %d was initiated later",
            sequence,
            self._latest_sequence,
        )
        return LoadOutcome(sequence=sequence, applied=False, state=self._state)

    async def load(self, source: str | Path) -> LoadOutcome:
        self._latest_sequence += 1
        sequence = self._latest_sequence
        self._state = LoadState.loading
        self._error = None
        source_label = str(source)

        try:
            text = await self._reader(source_label)
        except asyncio.CancelledError:
            if self._is_latest(sequence):
                self._fail(sequence, "load cancelled")
            raise
        except (EqualityInsightsError, OSError) as exc:
            if not self._is_latest(sequence):
                return self._discard(sequence)
            return self._fail(sequence, str(exc))
        except Exception as exc:
            if not self._is_latest(sequence):
                return self._discard(sequence)
            return self._fail_unexpected(sequence, exc)

        if not self._is_latest(sequence):
            return self._discard(sequence)

        try:
            result = build_dataset_from_text(text, self._config)
        except EqualityInsightsError as exc:
            return self._fail(sequence, str(exc))
        except Exception as exc:
            return self._fail_unexpected(sequence, exc)

        self._snapshot = DatasetSnapshot(version=sequence, source=source_label, result=result)
        self._state = LoadState.ready
        return LoadOutcome(
            sequence=sequence,
            applied=True,
            state=self._state,
            snapshot=self._snapshot,
        )
