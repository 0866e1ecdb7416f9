# src/taskflow_portal/core/ids.py

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime


def create_id(prefix: str) -> str:
    """Short unique id with a readable prefix, e.g. "task-3f9a0c1e"."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today() -> date:
    return datetime.now(UTC).date()


def parse_date(raw: object) -> date | None:
    """
    Parse a calendar date from user/persisted input.

    Accepts date/datetime objects and strings whose first 10 chars are YYYY-MM-DD
    (ISO timestamps included). Anything else yields None.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = str(raw).strip()[:10]
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None
