# duty/compliance.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from config import settings
from duty.models import Officer
from duty.officers import resolve
from services.time_utils import format_local, parse_instant
from utils.geo import LatLng, normalize_polygon

ACTIONS = ["check-in", "check-out", "patrol-update", "geofence-violation", "incident-report", "other"]


def _parse_location(raw) -> Optional[LatLng]:
    """"lat, lng" text, a [lat, lng] pair or a mapping → (lat, lng)."""
    if isinstance(raw, str):
        raw = [p.strip() for p in raw.split(",")]
    elif isinstance(raw, dict) and "coordinates" in raw:
        raw = raw["coordinates"]
    pts = normalize_polygon([raw])
    return pts[0] if pts else None


@dataclass(frozen=True)
class ActivityLog:
    id: str
    title: str = ""
    description: str = ""
    type: str = "other"
    officer_id: str = ""
    duty_id: str = ""
    location: Optional[LatLng] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_record(cls, rec: dict) -> "ActivityLog":
        kind = str(rec.get("type") or rec.get("action") or "other").strip().lower()
        return cls(
            id=str(rec.get("id") or ""),
            title=str(rec.get("title") or "").strip(),
            description=str(rec.get("description") or rec.get("details") or "").strip(),
            type=kind if kind in ACTIONS else "other",
            officer_id=str(rec.get("officerId") or "").strip(),
            duty_id=str(rec.get("dutyId") or "").strip(),
            location=_parse_location(rec.get("location")),
            timestamp=parse_instant(rec.get("timestamp") or rec.get("createdAt")),
        )


def _newest_first(logs: Iterable[ActivityLog]) -> List[ActivityLog]:
    # Undated entries sort last
    return sorted(logs, key=lambda a: (a.timestamp is not None, a.timestamp or datetime.min), reverse=True)


def recent(logs: Iterable[ActivityLog], limit: int = settings.RECENT_LOG_LIMIT) -> List[ActivityLog]:
    return _newest_first(logs)[:limit]


def for_officer(logs: Iterable[ActivityLog], officer_id: str) -> List[ActivityLog]:
    if not officer_id:
        return []
    return _newest_first(a for a in logs if a.officer_id == officer_id)


def for_duty(logs: Iterable[ActivityLog], duty_id: str) -> List[ActivityLog]:
    if not duty_id:
        return []
    return _newest_first(a for a in logs if a.duty_id == duty_id)


def logs_frame(logs: Sequence[ActivityLog], roster: Sequence[Officer]) -> pd.DataFrame:
    """Compliance log table with officer names resolved."""
    cols = ["time", "officer", "staff_id", "type", "title", "location", "duty_id"]
    rows = []
    for a in logs:
        who = resolve([a.officer_id] if a.officer_id else [], roster)
        rows.append({
            "time": format_local(a.timestamp, fmt="%d %b %Y %H:%M"),
            "officer": who.name,
            "staff_id": who.staff_id,
            "type": a.type,
            "title": a.title or a.description,
            "location": "" if a.location is None else f"{a.location[0]:.5f}, {a.location[1]:.5f}",
            "duty_id": a.duty_id,
        })
    return pd.DataFrame(rows, columns=cols)
