from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import yaml

CATEGORIES = ("economic", "social", "physical")
SEVERITY_TIERS = ("low", "middle", "high")

RECOMMENDATIONS_RESOURCE = "recommendations.yaml"
ACTIONS_RESOURCE = "actions.yaml"


@dataclass(frozen=True)
class ContentEntry:
    id: str
    category: str | None
    severity: str
    text: str
    tag: str | None = None

    def matches(self, category: str | None, severity: str) -> bool:
        if self.severity != severity:
            return False
        return self.category is None or self.category == category


@dataclass(frozen=True)
class ContentBank:
    name: str
    entries: tuple[ContentEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def pool(self, category: str | None, severity: str) -> list[ContentEntry]:
        return [entry for entry in self.entries if entry.matches(category, severity)]


def _require_string(value: Any, *, field_name: str, position: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"content entry {position} field '{field_name}' must be a non-empty string")
    return value.strip()


def _parse_entry(payload: Any, position: int) -> ContentEntry:
    if not isinstance(payload, Mapping):
        raise ValueError(f"content entry {position} must be a mapping/object")
    category = payload.get("category")
    if category is not None:
        category = _require_string(category, field_name="category", position=position)
        if category not in CATEGORIES:
            raise ValueError(f"content entry {position} has unknown category: {category}")
    severity = _require_string(payload.get("severity"), field_name="severity", position=position)
    if severity not in SEVERITY_TIERS:
        raise ValueError(f"content entry {position} has unknown severity: {severity}")
    tag = payload.get("tag")
    return ContentEntry(
        id=_require_string(payload.get("id"), field_name="id", position=position),
        category=category,
        severity=severity,
        text=_require_string(payload.get("text"), field_name="text", position=position),
        tag=str(tag) if tag else None,
    )


def parse_content_bank(payload: Mapping[str, Any], *, name: str) -> ContentBank:
    schema_version = int(payload.get("schema_version", 1))
    if schema_version != 1:
        raise ValueError(f"unsupported content bank schema_version: {schema_version}")
    raw_entries = payload.get("entries")
    if not isinstance(raw_entries, list):
        raise ValueError("content bank must define an 'entries' list")

    entries = tuple(_parse_entry(item, position) for position, item in enumerate(raw_entries))
    seen: set[str] = set()
    for entry in entries:
        if entry.id in seen:
            raise ValueError(f"duplicate content entry id: {entry.id}")
        seen.add(entry.id)
    return ContentBank(name=name, entries=entries)


def _read_payload(text: str) -> Mapping[str, Any]:
    payload = yaml.safe_load(text) or {}
    if not isinstance(payload, Mapping):
        raise ValueError("content bank file must contain a mapping/object")
    return payload


@lru_cache(maxsize=8)
def load_content_bank(path: str) -> ContentBank:
    source_path = Path(path)
    return parse_content_bank(
        _read_payload(source_path.read_text(encoding="utf-8")),
        name=source_path.stem,
    )


@lru_cache(maxsize=4)
def load_builtin_bank(resource_name: str) -> ContentBank:
    data_dir = resources.files("equality_insights") / "content" / "data"
    text = (data_dir / resource_name).read_text(encoding="utf-8")
    return parse_content_bank(_read_payload(text), name=Path(resource_name).stem)


def recommendations_bank(path: str | None = None) -> ContentBank:
    if path:
        return load_content_bank(path)
    return load_builtin_bank(RECOMMENDATIONS_RESOURCE)


def actions_bank(path: str | None = None) -> ContentBank:
    if path:
        return load_content_bank(path)
    return load_builtin_bank(ACTIONS_RESOURCE)
