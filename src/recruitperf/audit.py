"""Append-only JSONL audit trail of workflow transitions."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path

from .core.clock import as_utc


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=_json_default))
            handle.write("\n")


def to_iso(value: datetime | None) -> str | None:
    """Render a timestamp as ISO-8601 UTC; naive values are taken as UTC."""
    if value is None:
        return None
    return as_utc(value).to_iso8601_string()


def _json_default(value):
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
