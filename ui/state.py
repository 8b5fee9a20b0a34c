# ui/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, MutableMapping, Optional

import streamlit as st

from config import settings
from duty.compliance import ActivityLog
from duty.models import Duty, Officer, Vehicle, decode_all
from services.cache import CACHE
from services.store import Stores
from utils.constants import NAKA
from utils.geo import LatLng, latlng_from_click

DRAFT_KEY = "assignment_draft"
LAST_CLICK_KEY = "last_click"


@dataclass
class AssignmentDraft:
    """Assignment form state kept across Streamlit reruns."""
    center: Optional[LatLng] = None
    duty_type: str = NAKA
    radius_m: float = settings.DEFAULT_RADIUS_M
    officer_ids: List[str] = field(default_factory=list)
    vehicle_ids: List[str] = field(default_factory=list)

    def reset(self):
        self.center = None
        self.officer_ids = []
        self.vehicle_ids = []
        return self


def get_draft() -> AssignmentDraft:
    if DRAFT_KEY not in st.session_state:
        st.session_state[DRAFT_KEY] = AssignmentDraft()
    return st.session_state[DRAFT_KEY]


def take_new_click(ret: Any, state: Optional[MutableMapping] = None) -> Optional[LatLng]:
    """Map click from an st_folium return value, once.

    st_folium keeps returning its last click on every rerun; a click equal
    to the one already taken is ignored so a reset draft stays empty.
    """
    state = st.session_state if state is None else state
    latlng = latlng_from_click(ret)
    if latlng is None or state.get(LAST_CLICK_KEY) == latlng:
        return None
    state[LAST_CLICK_KEY] = latlng
    return latlng


@dataclass
class ConsoleData:
    duties: List[Duty]
    roster: List[Officer]
    vehicles: List[Vehicle]
    logs: List[ActivityLog]
    loaded_at: datetime


def load_console_data(stores: Stores, now: datetime) -> ConsoleData:
    """Decode the latest cached snapshots (polling backends are refreshed first)."""
    for _, store in stores.items():
        refresh = getattr(store, "refresh", None)
        if callable(refresh):
            refresh()
    return ConsoleData(
        duties=decode_all(CACHE.snapshot(settings.DUTIES_COLLECTION), Duty),
        roster=decode_all(CACHE.snapshot(settings.OFFICERS_COLLECTION), Officer),
        vehicles=decode_all(CACHE.snapshot(settings.VEHICLES_COLLECTION), Vehicle),
        logs=decode_all(CACHE.snapshot(settings.ACTIVITIES_COLLECTION), ActivityLog),
        loaded_at=now,
    )
