# duty/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from duty.officers import normalize_ids, officer_ids_from_record
from services.time_utils import iso, parse_instant
from utils.constants import TERMINAL_STATUSES
from utils.geo import LatLng, build_circle_polygon, coerce_float, normalize_polygon


def _text(v: Any) -> str:
    return "" if v is None else str(v).strip()


def _first(rec: dict, *names: str) -> str:
    for n in names:
        s = _text(rec.get(n))
        if s:
            return s
    return ""


def _area_from_location(rec: dict) -> List[LatLng]:
    """Duty geofence from any stored shape.

    Current records keep ``location.polygon``; some keep a top-level ``area``;
    the oldest kept ``location.coordinates`` + ``location.geofence`` with a
    radius (naka) or a polygon (patrol).
    """
    loc = rec.get("location")
    loc = loc if isinstance(loc, dict) else {}

    area = normalize_polygon(loc.get("polygon"))
    if area:
        return area
    area = normalize_polygon(rec.get("area"))
    if area:
        return area

    fence = loc.get("geofence")
    fence = fence if isinstance(fence, dict) else {}
    area = normalize_polygon(fence.get("polygon"))
    if area:
        return area
    center = normalize_polygon([loc.get("coordinates")])
    if center:
        raw = fence.get("radius")
        if raw is None or raw == 0 or raw == "":
            return center
        radius = coerce_float(raw)
        if radius is None or radius <= 0:
            # unusable radius: no trustworthy geofence
            return []
        try:
            return build_circle_polygon(center[0], radius)
        except ValueError:
            return []
    return []


@dataclass(frozen=True)
class Duty:
    id: str = ""
    officer_ids: Tuple[str, ...] = ()
    vehicle_ids: Tuple[str, ...] = ()
    duty_type: str = ""
    area: Tuple[LatLng, ...] = ()
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: str = ""
    comments: str = ""
    assigned_at: Optional[datetime] = None
    location_name: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_record(cls, rec: dict) -> "Duty":
        """Decode a stored duty. Malformed parts degrade to empty values."""
        rec = rec if isinstance(rec, dict) else {}
        loc = rec.get("location") if isinstance(rec.get("location"), dict) else {}
        return cls(
            id=_text(rec.get("id")),
            officer_ids=tuple(officer_ids_from_record(rec)),
            vehicle_ids=tuple(normalize_ids(rec.get("vehicleIds"))),
            duty_type=_first(rec, "type", "dutyType").lower(),
            area=tuple(_area_from_location(rec)),
            start_time=parse_instant(rec.get("startTime")),
            end_time=parse_instant(rec.get("endTime")),
            status=_text(rec.get("status")).lower(),
            comments=_text(rec.get("comments")),
            assigned_at=parse_instant(rec.get("assignedAt") or rec.get("createdAt")),
            location_name=_text(loc.get("name")),
        )

    def to_record(self) -> Dict[str, Any]:
        """Encode in the shape the current console writes (no id)."""
        rec: Dict[str, Any] = {
            "officerUids": list(self.officer_ids),
            "type": self.duty_type,
            "location": {"polygon": [{"lat": lat, "lng": lng} for lat, lng in self.area]},
            "status": self.status,
            "comments": self.comments,
        }
        if self.location_name:
            rec["location"]["name"] = self.location_name
        if self.vehicle_ids:
            rec["vehicleIds"] = list(self.vehicle_ids)
        for key, val in (("startTime", self.start_time), ("endTime", self.end_time), ("assignedAt", self.assigned_at)):
            if val is not None:
                rec[key] = iso(val)
        return rec


@dataclass(frozen=True)
class Officer:
    id: str
    staff_id: str = ""
    name: str = ""
    designation: str = ""
    nature_of_work: str = ""

    @classmethod
    def from_record(cls, rec: dict) -> "Officer":
        return cls(
            id=_text(rec.get("id")),
            staff_id=_first(rec, "staff_id", "staffId", "badgeId"),
            name=_first(rec, "staff_name", "name"),
            designation=_first(rec, "staff_designation", "designation", "rank"),
            nature_of_work=_first(rec, "staff_nature_of_work", "natureOfWork"),
        )


@dataclass(frozen=True)
class Vehicle:
    id: str
    number: str = ""
    kind: str = ""
    status: str = ""

    @classmethod
    def from_record(cls, rec: dict) -> "Vehicle":
        return cls(
            id=_text(rec.get("id")),
            number=_first(rec, "vehicle_number", "registration", "number"),
            kind=_first(rec, "vehicle_type", "type"),
            status=_first(rec, "status").lower(),
        )


def decode_all(records, model) -> list:
    """Decode a snapshot, skipping entries that are not mappings."""
    return [model.from_record(r) for r in (records or []) if isinstance(r, dict)]
