# duty/lifecycle.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Tuple

from duty.models import Duty
from utils.constants import ACTIVE, ASSIGNED, INCOMPLETE, MISSED, SWEEP_STATUS


class EffectiveStatus(str, Enum):
    ACTIVE = "active"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"
    COMPLETED = "completed"
    UNKNOWN = "unknown"


def _lapsed(duty: Duty, now: datetime) -> bool:
    return duty.end_time is not None and duty.end_time < now


def is_displayable(duty: Duty, now: datetime) -> bool:
    """Map / active-list visibility. Reads only; never changes stored status."""
    if not duty.area:
        return False
    if duty.is_terminal:
        return False
    if _lapsed(duty, now):
        return False
    return True


def sweep_expired(duties: Iterable[Duty], now: datetime) -> List[Tuple[str, str]]:
    """(duty_id, new_status) for every lapsed duty not yet in a terminal state."""
    return [
        (d.id, SWEEP_STATUS)
        for d in duties
        if d.id and not d.is_terminal and _lapsed(d, now)
    ]


def classify(duty: Duty, now: datetime) -> EffectiveStatus:
    if duty.is_terminal:
        return EffectiveStatus.COMPLETED
    if _lapsed(duty, now) or duty.status == MISSED:
        return EffectiveStatus.EXPIRED
    if duty.status == ACTIVE:
        return EffectiveStatus.ACTIVE
    if duty.status in (INCOMPLETE, ASSIGNED):
        return EffectiveStatus.INCOMPLETE
    return EffectiveStatus.UNKNOWN


def partition(duties: Iterable[Duty], now: datetime) -> Tuple[List[Duty], List[Duty]]:
    """Split into (active, completed) the way the dashboard counts them.

    Active: status "active", or "incomplete" with an end time still ahead.
    Completed: terminal status, or an end time at or before now.
    A duty can fall in neither list (e.g. "assigned" with no end time).
    """
    active, completed = [], []
    for d in duties:
        ended = d.end_time is not None and d.end_time <= now
        if d.status == ACTIVE or (d.status == INCOMPLETE and d.end_time is not None and not ended):
            active.append(d)
        if d.is_terminal or ended:
            completed.append(d)
    return active, completed
