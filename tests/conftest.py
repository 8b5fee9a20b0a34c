from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from duty.models import Officer, Vehicle  # noqa: E402
from utils.geo import build_circle_polygon  # noqa: E402


@pytest.fixture()
def now():
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def roster():
    return [
        Officer(id="u1", staff_id="S1", name="Ravi Naik", designation="PSI"),
        Officer(id="u2", staff_id="S2", name="Anita Desai", designation="HC", nature_of_work="Traffic"),
        Officer(id="u3"),
        Officer(id="u4", staff_id="S4", name="Joel Dsouza", designation="PC", nature_of_work="On Leave"),
    ]


@pytest.fixture()
def vehicles():
    return [
        Vehicle(id="v1", number="GA-01-G-1234", kind="jeep", status="available"),
        Vehicle(id="v2", number="GA-01-G-5678", kind="bike", status="maintenance"),
        Vehicle(id="v3", number="GA-01-G-9999", kind="bike"),
    ]


@pytest.fixture()
def area():
    return build_circle_polygon((15.30, 74.12), 200)
