from __future__ import annotations

import re
from datetime import UTC, date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from presto_sync.core.config import settings

TBA_MARKERS = frozenset({"TBA", "TBD", "TBA/TBD"})

_TIME_IN_ISO = re.compile(r"T(\d{2}):(\d{2})")


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_today(tz_name: str | None = None) -> date:
    return datetime.now(tz=ZoneInfo(tz_name or settings.local_timezone)).date()


def is_tba(value: Any) -> bool:
    return isinstance(value, str) and value.strip().upper() in TBA_MARKERS


def parse_event_date(value: Any) -> date | None:
    """
    Parse an event date into a calendar date.

    Supports:
      - ISO strings: "2025-03-01", "2025-03-01T18:00:00Z", "2025-03-01T18:00:00-06:00"
      - US style: "03/01/2025"
      - epoch milliseconds / seconds
    Returns None for TBA markers and empty values.
    """
    if value in (None, "") or is_tba(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 10_000_000_000 else float(value)
        return datetime.fromtimestamp(seconds, tz=UTC).date()
    if isinstance(value, str):
        text = value.strip()
        try:
            # Keep the provider's own calendar date rather than converting zones.
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
        try:
            return datetime.strptime(text, "%m/%d/%Y").date()
        except ValueError:
            pass
    raise ValueError(f"Unrecognized event date: {value!r}")


def parse_event_time(value: Any, *, date_value: Any = None) -> str | None:
    """Return a display time ("18:00", "6:00 PM") or None for TBA/missing."""
    if isinstance(value, str) and value.strip():
        return None if is_tba(value) else value.strip()
    if isinstance(date_value, str):
        m = _TIME_IN_ISO.search(date_value)
        if m and (m.group(1), m.group(2)) != ("00", "00"):
            return f"{m.group(1)}:{m.group(2)}"
    return None


def parse_datetime(value: Any) -> datetime | None:
    """Best-effort parser for provider timestamps; None on bad input."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 10_000_000_000 else float(value)
        return datetime.fromtimestamp(seconds, tz=UTC)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def parse_date(value: Any) -> date | None:
    """Best-effort calendar date; None on bad input."""
    try:
        return parse_event_date(value)
    except ValueError:
        return None
