from __future__ import annotations


class EqualityInsightsError(Exception):
    """Base exception for scoring pipeline failures."""


class DatasetLoadError(EqualityInsightsError, RuntimeError):
    """Raised when the scores asset cannot be read."""


class DuplicateRowError(EqualityInsightsError, ValueError):
    """Raised when two rows share the same (entity, period) key."""

    def __init__(self, keys: list[tuple[str, int]]) -> None:
        self.keys = keys
        preview = ", ".join(f"{entity}/{period}" for entity, period in keys[:5])
        more = f" (+{len(keys) - 5} more)" if len(keys) > 5 else ""
        super().__init__(f"Duplicate (entity, period) rows: {preview}{more}")


class ConfigurationError(EqualityInsightsError, ValueError):
    """Raised when a comparator or severity scale is constructed with invalid options."""
