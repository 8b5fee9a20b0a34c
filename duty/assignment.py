# duty/assignment.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence

from config import settings
from duty.models import Duty, Officer, Vehicle
from duty.officers import normalize_ids
from services.time_utils import now_utc, parse_instant
from utils.constants import DUTY_TYPES, INCOMPLETE, STATUSES
from utils.geo import LatLng, build_circle_polygon

logger = logging.getLogger(__name__)


class AssignmentError(ValueError):
    pass


@dataclass
class AssignmentRequest:
    officer_ids: List[str] = field(default_factory=list)
    duty_type: str = ""
    center: Optional[LatLng] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    radius_m: Optional[float] = None
    vehicle_ids: List[str] = field(default_factory=list)
    comments: str = ""
    location_name: str = ""


def clamp_radius(radius_m: Optional[float]) -> float:
    """Missing or non-positive → default; anything smaller than the floor → floor."""
    if radius_m is None or not radius_m > 0:
        return settings.DEFAULT_RADIUS_M
    return max(float(radius_m), settings.MIN_RADIUS_M)


def build_duty(
    req: AssignmentRequest,
    roster: Sequence[Officer],
    vehicles: Sequence[Vehicle] = (),
    now: Optional[datetime] = None,
) -> Duty:
    """Validate an assignment and build the new duty (status "incomplete")."""
    if req.center is None:
        raise AssignmentError("Location required: select a location on the map")

    officer_ids = normalize_ids(req.officer_ids)
    duty_type = (req.duty_type or "").strip().lower()
    if not officer_ids or duty_type not in DUTY_TYPES:
        raise AssignmentError("Select at least one officer and a duty type")

    known = {o.id for o in roster}
    officer_ids = [i for i in officer_ids if i in known]
    if not officer_ids:
        raise AssignmentError("No valid officers selected")
    known_vehicles = {v.id for v in vehicles}
    vehicle_ids = [i for i in normalize_ids(req.vehicle_ids) if i in known_vehicles]

    # Naive instants are taken as UTC
    start, end = parse_instant(req.start), parse_instant(req.end)
    if start is None or end is None:
        raise AssignmentError("Start and end time are required")
    if start >= end:
        raise AssignmentError("End time must be after start time")

    return Duty(
        officer_ids=tuple(officer_ids),
        vehicle_ids=tuple(vehicle_ids),
        duty_type=duty_type,
        area=tuple(build_circle_polygon(req.center, clamp_radius(req.radius_m))),
        start_time=start,
        end_time=end,
        status=INCOMPLETE,
        comments=(req.comments or "").strip(),
        assigned_at=now or now_utc(),
        location_name=(req.location_name or "").strip(),
    )


def create_duty(store: Any, req: AssignmentRequest, roster, vehicles=(), now=None) -> str:
    """Validate, then write the duty. Store failures propagate as StoreWriteError."""
    duty = build_duty(req, roster, vehicles, now)
    duty_id = store.create(duty.to_record())
    logger.info(f"Duty {duty_id} assigned to {len(duty.officer_ids)} officer(s)")
    return duty_id


def change_status(store: Any, duty_id: str, status: str) -> None:
    """User-initiated status change; the caller reports a failure to the user."""
    status = (status or "").strip().lower()
    if status not in STATUSES:
        raise AssignmentError(f"Unknown status: {status!r}")
    store.update(duty_id, {"status": status})
