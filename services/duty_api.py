# services/duty_api.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from config import settings
from core.data import DutyView, dashboard_stats, derive_views
from duty import compliance
from duty.assignment import AssignmentError, AssignmentRequest, change_status, create_duty
from duty.compliance import ActivityLog
from duty.models import Duty, Officer, Vehicle, decode_all
from services.store import StoreError, Stores, StoreWriteError
from services.sweeper import ExpirySweeper
from services.time_utils import iso, now_utc
from utils.constants import DEFAULT_COLOR, TYPE_COLORS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["duties"])


def get_stores(request: Request) -> Stores:
    stores = getattr(request.app.state, "stores", None)
    if stores is None:
        raise HTTPException(status_code=503, detail="Stores are not ready")
    return stores


# ── Bodies ───────────────────────────────────────────────────────────────────
class DutyIn(BaseModel):
    officer_ids: List[str] = Field(default_factory=list)
    duty_type: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    radius_m: Optional[float] = None
    vehicle_ids: List[str] = Field(default_factory=list)
    comments: str = ""
    location_name: str = ""


class StatusIn(BaseModel):
    status: str


# ── Helpers ──────────────────────────────────────────────────────────────────
def _roster(stores: Stores) -> List[Officer]:
    return decode_all(stores.officers.list(), Officer)


def _duty_out(d: Duty) -> dict:
    return {
        "id": d.id,
        "officer_ids": list(d.officer_ids),
        "vehicle_ids": list(d.vehicle_ids),
        "type": d.duty_type,
        "status": d.status,
        "start_time": iso(d.start_time) if d.start_time else None,
        "end_time": iso(d.end_time) if d.end_time else None,
        "assigned_at": iso(d.assigned_at) if d.assigned_at else None,
        "comments": d.comments,
        "location_name": d.location_name,
        "area": [{"lat": lat, "lng": lng} for lat, lng in d.area],
    }


def _view_out(v: DutyView) -> dict:
    return {
        **_duty_out(v.duty),
        "officer": v.officer.as_dict(),
        "center": {"lat": v.center[0], "lng": v.center[1]},
        "radius_m": round(v.radius_m, 2),
        "effective_status": v.effective.value,
    }


def _current_views(stores: Stores) -> List[DutyView]:
    duties = decode_all(stores.duties.list(), Duty)
    return derive_views(duties, _roster(stores), now_utc())


# ── Routes ───────────────────────────────────────────────────────────────────
@router.get("/duties")
def list_duties(stores: Stores = Depends(get_stores)):
    return [_duty_out(d) for d in decode_all(stores.duties.list(), Duty)]


@router.get("/duties/active")
def active_duties(stores: Stores = Depends(get_stores)):
    return [_view_out(v) for v in _current_views(stores)]


@router.get("/duties/map")
def duty_map(stores: Stores = Depends(get_stores)):
    """Marker + circle per displayable duty, ready for a map client."""
    out = []
    for v in _current_views(stores):
        out.append({
            "id": v.duty.id,
            "marker": {"lat": v.center[0], "lng": v.center[1], "title": v.officer.name},
            "circle": {"lat": v.center[0], "lng": v.center[1], "radius_m": round(v.radius_m, 2)},
            "color": TYPE_COLORS.get(v.duty.duty_type, DEFAULT_COLOR),
            "type": v.duty.duty_type,
            "status": v.duty.status,
        })
    return out


@router.get("/stats")
def stats(stores: Stores = Depends(get_stores)):
    duties = decode_all(stores.duties.list(), Duty)
    vehicles = decode_all(stores.vehicles.list(), Vehicle)
    return dashboard_stats(duties, _roster(stores), vehicles, now_utc())


@router.post("/duties", status_code=201)
def assign_duty(body: DutyIn, stores: Stores = Depends(get_stores)):
    center = (body.lat, body.lng) if body.lat is not None and body.lng is not None else None
    req = AssignmentRequest(
        officer_ids=body.officer_ids,
        duty_type=body.duty_type,
        center=center,
        start=body.start,
        end=body.end,
        radius_m=body.radius_m,
        vehicle_ids=body.vehicle_ids,
        comments=body.comments,
        location_name=body.location_name,
    )
    vehicles = decode_all(stores.vehicles.list(), Vehicle)
    try:
        duty_id = create_duty(stores.duties, req, _roster(stores), vehicles)
    except AssignmentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreWriteError as e:
        logger.error(f"Duty assignment failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to assign duty")
    return {"id": duty_id}


@router.patch("/duties/{duty_id}/status")
def update_status(duty_id: str, body: StatusIn, stores: Stores = Depends(get_stores)):
    try:
        change_status(stores.duties, duty_id, body.status)
    except AssignmentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreWriteError as e:
        logger.error(f"Status update for {duty_id} failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to update duty status")
    return {"id": duty_id, "status": body.status.strip().lower()}


@router.delete("/duties/{duty_id}", status_code=204)
def delete_duty(duty_id: str, stores: Stores = Depends(get_stores)):
    try:
        stores.duties.delete(duty_id)
    except StoreError as e:
        logger.error(f"Delete of {duty_id} failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to delete duty")


@router.post("/duties/sweep")
def sweep(stores: Stores = Depends(get_stores)):
    """Run one expiry sweep now (the background sweeper keeps its own schedule)."""
    done = ExpirySweeper(stores.duties, stores.duties.list).run_once()
    return {"completed": done}


@router.get("/activities")
def activities(
    officer_id: Optional[str] = Query(None),
    duty_id: Optional[str] = Query(None),
    limit: int = Query(settings.RECENT_LOG_LIMIT, ge=1, le=500),
    stores: Stores = Depends(get_stores),
):
    logs = decode_all(stores.activities.list(), ActivityLog)
    if officer_id:
        logs = compliance.for_officer(logs, officer_id)
    if duty_id:
        logs = compliance.for_duty(logs, duty_id)
    return [
        {
            "id": a.id,
            "title": a.title,
            "description": a.description,
            "type": a.type,
            "officer_id": a.officer_id,
            "duty_id": a.duty_id,
            "location": None if a.location is None else {"lat": a.location[0], "lng": a.location[1]},
            "timestamp": iso(a.timestamp) if a.timestamp else None,
        }
        for a in compliance.recent(logs, limit)
    ]
