# services/time_utils.py
from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: Any) -> Optional[datetime]:
    """Stored instant → aware UTC datetime, or None when absent/unparseable.

    Handles ISO-8601 strings, datetimes (naive taken as UTC), epoch numbers
    (seconds, or milliseconds when large) and Firestore timestamp mappings
    ({"seconds", "nanoseconds"} or {"_seconds", "_nanoseconds"}). Any other
    shape (lists, arbitrary mappings) is treated as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        secs = value.get("seconds", value.get("_seconds"))
        if secs is None:
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
        try:
            return datetime.fromtimestamp(float(secs) + float(nanos) / 1e9, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    if not isinstance(value, (str, int, float, datetime)):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        if isinstance(value, (int, float)):
            unit = "ms" if abs(value) > 1e11 else "s"
            ts = pd.to_datetime(value, unit=unit, utc=True, errors="coerce")
        else:
            ts = pd.to_datetime(value, utc=True, errors="coerce")
    except (ValueError, OverflowError):
        return None
    # NaT is not a Timestamp
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def iso(dt: datetime) -> str:
    """UTC ISO-8601 with a trailing Z, the shape the console stores."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_datetime(day: date, at: time, tz: str = settings.DEFAULT_TZ) -> datetime:
    """Form date + time in the console zone → aware UTC instant."""
    return datetime.combine(day, at, tzinfo=ZoneInfo(tz)).astimezone(timezone.utc)


def format_local(dt: Optional[datetime], fmt: str = settings.DISPLAY_TIME_FMT, tz: str = settings.DEFAULT_TZ) -> str:
    if dt is None:
        return "Unknown"
    return dt.astimezone(ZoneInfo(tz)).strftime(fmt)


def label_time_window(start: Optional[datetime], end: Optional[datetime], tz: str = settings.DEFAULT_TZ) -> str:
    """UI label for a duty window in the console zone."""
    return f"{format_local(start, tz=tz)} → {format_local(end, tz=tz)}"
