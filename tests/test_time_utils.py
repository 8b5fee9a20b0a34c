from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from services.time_utils import format_local, iso, label_time_window, local_datetime, parse_instant

EPOCH = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)  # 1_700_000_000


@pytest.mark.parametrize(
    "raw",
    [
        "2023-11-14T22:13:20Z",
        "2023-11-14T22:13:20.000Z",
        "2023-11-15T03:43:20+05:30",
        1_700_000_000,
        1_700_000_000_000,
        {"seconds": 1_700_000_000, "nanoseconds": 0},
        {"_seconds": 1_700_000_000, "_nanoseconds": 0},
        EPOCH,
    ],
)
def test_parse_instant_shapes(raw):
    assert parse_instant(raw) == EPOCH


def test_parse_instant_naive_is_utc():
    got = parse_instant(datetime(2024, 1, 1, 9, 0))
    assert got.tzinfo is not None
    assert got == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", [None, "", "not a date", True, {"foo": 1}, ["2024-06-01T13:00:00Z", "x"], ["2024-06-01T13:00:00Z"], {1, 2}, object()])
def test_parse_instant_unparseable(raw):
    assert parse_instant(raw) is None


def test_iso_has_trailing_z():
    assert iso(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2024-01-02T03:04:05.000Z"


def test_local_datetime_is_console_zone():
    got = local_datetime(date(2024, 1, 1), time(9, 0), tz="Asia/Kolkata")
    assert got == datetime(2024, 1, 1, 3, 30, tzinfo=timezone.utc)


def test_format_local():
    dt = datetime(2024, 1, 1, 3, 30, tzinfo=timezone.utc)
    assert format_local(dt, fmt="%H:%M", tz="Asia/Kolkata") == "09:00"
    assert format_local(None) == "Unknown"
    assert label_time_window(dt, None, tz="Asia/Kolkata").endswith("→ Unknown")
