# core/data.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from duty.lifecycle import EffectiveStatus, classify, is_displayable, partition
from duty.models import Duty, Officer, Vehicle
from duty.officers import OfficerSummary, available_vehicles, resolve
from services.time_utils import format_local
from utils.geo import LatLng, centroid, effective_radius


# -------- display view per duty --------
@dataclass(frozen=True)
class DutyView:
    duty: Duty
    officer: OfficerSummary
    center: LatLng
    radius_m: float
    effective: EffectiveStatus


def derive_views(duties: Iterable[Duty], roster: Sequence[Officer], now: datetime) -> List[DutyView]:
    """Displayable duties only, with officer summary and display geometry.

    Recomputed wholesale on every snapshot; nothing here writes back.
    """
    views = []
    for d in duties:
        if not is_displayable(d, now):
            continue
        c = centroid(d.area)
        views.append(DutyView(
            duty=d,
            officer=resolve(d.officer_ids, roster),
            center=c,
            radius_m=effective_radius(d.area, c),
            effective=classify(d, now),
        ))
    return views


# -------- active list table --------
ACTIVE_COLUMNS = ["id", "officer", "designation", "staff_id", "type", "status", "start", "end", "lat", "lng", "radius_m"]


def active_duties_frame(views: Sequence[DutyView]) -> pd.DataFrame:
    rows = [{
        "id": v.duty.id,
        "officer": v.officer.name,
        "designation": v.officer.designation,
        "staff_id": v.officer.staff_id,
        "type": (v.duty.duty_type or "unknown").upper(),
        "status": (v.duty.status or "unknown").upper(),
        "start": format_local(v.duty.start_time, fmt="%H:%M"),
        "end": format_local(v.duty.end_time, fmt="%H:%M"),
        "lat": v.center[0],
        "lng": v.center[1],
        "radius_m": round(v.radius_m, 1),
    } for v in views]
    return pd.DataFrame(rows, columns=ACTIVE_COLUMNS)


# -------- dashboard KPIs --------
def dashboard_stats(
    duties: Sequence[Duty],
    roster: Sequence[Officer],
    vehicles: Sequence[Vehicle],
    now: datetime,
) -> Dict[str, int]:
    active, completed = partition(duties, now)
    shown = [d for d in duties if is_displayable(d, now)]
    on_duty = {i for d in shown for i in d.officer_ids}
    return {
        "officers": len(roster),
        "on_duty": len(on_duty),
        "active_duties": len(active),
        "completed_duties": len(completed),
        "vehicles_available": len(available_vehicles(vehicles)),
    }
