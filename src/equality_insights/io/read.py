from __future__ import annotations

import asyncio
from pathlib import Path

from equality_insights.errors import DatasetLoadError


def read_text(path: str | Path) -> str:
    """Read a UTF-8 asset, surfacing any I/O failure as ``DatasetLoadError``."""
    source_path = Path(path)
    try:
        # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
        return source_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DatasetLoadError(f"Failed to load {source_path}: {exc}") from exc


async def read_text_async(path: str | Path) -> str:
    return await asyncio.to_thread(read_text, path)
