from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from duty.assignment import AssignmentError, AssignmentRequest, build_duty, change_status, clamp_radius, create_duty
from services.store import MemoryCollection, StoreWriteError
from utils.geo import centroid, effective_radius

CENTER = (15.4909, 73.8278)


@pytest.fixture()
def request_ok(now):
    return AssignmentRequest(
        officer_ids=["u1", "ghost"],
        duty_type="Naka",
        center=CENTER,
        start=now,
        end=now + timedelta(hours=8),
        vehicle_ids=["v1", "v404"],
        comments="  bridge checkpoint ",
    )


@pytest.mark.parametrize("raw,expected", [(None, 200), (0, 200), (-10, 200), (10, 50), (50, 50), (750, 750)])
def test_clamp_radius(raw, expected):
    assert clamp_radius(raw) == expected


def test_build_duty(request_ok, roster, vehicles, now):
    d = build_duty(request_ok, roster, vehicles, now=now)
    assert d.officer_ids == ("u1",)
    assert d.vehicle_ids == ("v1",)
    assert d.duty_type == "naka"
    assert d.status == "incomplete"
    assert d.assigned_at == now
    assert d.comments == "bridge checkpoint"
    assert len(d.area) == 16
    c = centroid(d.area)
    assert c == pytest.approx(CENTER, abs=1e-9)
    assert effective_radius(d.area, c) == pytest.approx(200, rel=1e-6)


def test_small_radius_is_floored(request_ok, roster, now):
    request_ok.radius_m = 10
    d = build_duty(request_ok, roster, now=now)
    assert effective_radius(d.area, centroid(d.area)) == pytest.approx(50, rel=1e-6)


def test_naive_times_are_utc(request_ok, roster):
    request_ok.start = datetime(2024, 6, 1, 9, 0)
    request_ok.end = datetime(2024, 6, 1, 17, 0)
    d = build_duty(request_ok, roster)
    assert d.start_time == datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "change,message",
    [
        ({"center": None}, "Location required"),
        ({"officer_ids": []}, "at least one officer"),
        ({"duty_type": "escort"}, "at least one officer and a duty type"),
        ({"officer_ids": ["nobody"]}, "No valid officers"),
        ({"start": None}, "Start and end time are required"),
        ({"end": None}, "Start and end time are required"),
    ],
)
def test_build_duty_rejects(request_ok, roster, change, message):
    for k, v in change.items():
        setattr(request_ok, k, v)
    with pytest.raises(AssignmentError, match=message):
        build_duty(request_ok, roster)


def test_end_must_follow_start(request_ok, roster):
    request_ok.end = request_ok.start
    with pytest.raises(AssignmentError, match="End time must be after start time"):
        build_duty(request_ok, roster)


def test_create_duty_writes_record(request_ok, roster, vehicles, now):
    col = MemoryCollection("duties")
    duty_id = create_duty(col, request_ok, roster, vehicles, now=now)
    rec = col.get(duty_id)
    assert rec["officerUids"] == ["u1"]
    assert rec["vehicleIds"] == ["v1"]
    assert rec["status"] == "incomplete"
    assert len(rec["location"]["polygon"]) == 16


def test_create_duty_store_failure_propagates(request_ok, roster):
    class Broken:
        def create(self, record):
            raise StoreWriteError("offline")

    with pytest.raises(StoreWriteError):
        create_duty(Broken(), request_ok, roster)


def test_change_status():
    col = MemoryCollection("duties", [{"id": "d1", "status": "incomplete"}])
    change_status(col, "d1", " Active ")
    assert col.get("d1")["status"] == "active"

    with pytest.raises(AssignmentError):
        change_status(col, "d1", "paused")
    with pytest.raises(StoreWriteError):
        change_status(col, "ghost", "completed")
