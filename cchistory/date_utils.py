"""Shared timestamp parsing helpers."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_ts(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting the trailing ``Z`` form.

    Naive values are assumed to be UTC. Returns None for anything unparseable.
    """
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_datetime_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def file_modified_at(path: Path) -> str:
    """Return the normalized modification time of ``path``, or "" if unavailable."""
    try:
        stats = path.stat()
    except OSError:
        return ""
    return format_datetime_utc(datetime.fromtimestamp(float(stats.st_mtime), timezone.utc))
