# duty/officers.py
"""Officer id normalization and roster resolution.

Duty records written by successive console versions carry their assigned
officers in different shapes: a single scalar under ``officerUid``, a list of
ids under ``officerUids``/``officerIds``, or a list of objects wrapping the
id. Everything is decoded here, once, into a plain list of id strings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, List, Sequence, Tuple

from utils.constants import (
    PLACEHOLDER,
    UNASSIGNED,
    UNAVAILABLE_MARKERS,
    UNKNOWN,
    UNKNOWN_OFFICER,
    VEHICLE_AVAILABLE,
)

if TYPE_CHECKING:
    from duty.models import Officer, Vehicle

# Field names holding assigned officers, newest shape first
OFFICER_FIELDS = ("officerUids", "officerIds", "officerUid", "officerId")
_WRAPPED_ID_KEYS = ("id", "uid", "value")


def _stringify(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v).strip()


def _unwrap(item: Any) -> Any:
    if isinstance(item, dict):
        for k in _WRAPPED_ID_KEYS:
            if item.get(k) is not None:
                return item[k]
        return ""
    return item


def normalize_ids(raw: Any) -> List[str]:
    """Any stored id shape → list of trimmed, non-empty id strings (order kept)."""
    if raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    out = [_stringify(_unwrap(it)) for it in items]
    return [s for s in out if s]


def officer_ids_from_record(record: dict) -> List[str]:
    """Pick the first populated officer field on a duty record and normalize it."""
    for name in OFFICER_FIELDS:
        ids = normalize_ids(record.get(name))
        if ids:
            return ids
    return []


# ── Roster resolution ────────────────────────────────────────────────────────
@dataclass(frozen=True)
class OfficerSummary:
    name: str
    designation: str
    staff_id: str
    officers: Tuple["Officer", ...] = field(default=(), compare=False)

    def as_dict(self) -> dict:
        return {"name": self.name, "designation": self.designation, "staffId": self.staff_id}


def _match(ids: Sequence[str], roster: Iterable["Officer"], attr: str) -> List["Officer"]:
    wanted = set(ids)
    return [o for o in roster if o is not None and _stringify(getattr(o, attr, "")) in wanted]


def _officers_label(n: int) -> str:
    return f"{n} Officer" if n == 1 else f"{n} Officers"


def resolve(ids: Sequence[str], roster: Sequence["Officer"]) -> OfficerSummary:
    """Resolve officer ids against the roster into a display summary.

    Matches on the internal id first; when nothing matches, retries on the
    human-facing staff id, which some historical records stored instead.
    Absence is always returned as data, never raised.
    """
    ids = [i for i in (_stringify(x) for x in ids) if i]
    matched = _match(ids, roster, "id") or _match(ids, roster, "staff_id")

    if not matched:
        if ids:
            return OfficerSummary(_officers_label(len(ids)), "Assigned", ", ".join(ids))
        return OfficerSummary(UNASSIGNED, PLACEHOLDER, PLACEHOLDER)

    if len(matched) == 1:
        o = matched[0]
        return OfficerSummary(
            o.name.strip() or UNKNOWN_OFFICER,
            o.designation.strip() or UNKNOWN,
            o.staff_id.strip() or UNKNOWN,
            (o,),
        )

    return OfficerSummary(
        _officers_label(len(matched)),
        ", ".join(o.designation.strip() for o in matched if o.designation.strip()),
        ", ".join(o.staff_id.strip() for o in matched if o.staff_id.strip()),
        tuple(matched),
    )


# ── Assignment form helpers ──────────────────────────────────────────────────
def available_officers(roster: Iterable["Officer"]) -> List["Officer"]:
    """Officers not marked absent or on leave."""
    out = []
    for o in roster:
        work = (o.nature_of_work or "").lower()
        if any(m in work for m in UNAVAILABLE_MARKERS):
            continue
        out.append(o)
    return out


def search_officers(roster: Iterable["Officer"], term: str) -> List["Officer"]:
    term = (term or "").strip().lower()
    if not term:
        return list(roster)
    return [
        o for o in roster
        if term in o.name.lower() or term in o.staff_id.lower() or term in o.designation.lower()
    ]


def available_vehicles(vehicles: Iterable["Vehicle"]) -> List["Vehicle"]:
    return [v for v in vehicles if not v.status or v.status.lower() == VEHICLE_AVAILABLE]
