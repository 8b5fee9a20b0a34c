from __future__ import annotations

from datetime import timedelta

import pytest

from duty.lifecycle import EffectiveStatus, classify, is_displayable, partition, sweep_expired
from duty.models import Duty

SQUARE = ((15.0, 74.0), (15.0, 74.01), (15.01, 74.01), (15.01, 74.0))


def _duty(now, status="incomplete", end=timedelta(hours=1), area=SQUARE, id="d1"):
    return Duty(id=id, status=status, area=area, end_time=None if end is None else now + end)


def test_completed_with_future_end_is_hidden(now):
    assert not is_displayable(_duty(now, status="completed"), now)
    assert not is_displayable(_duty(now, status="complete"), now)


def test_lapsed_by_one_second_is_hidden(now):
    assert not is_displayable(_duty(now, end=timedelta(seconds=-1)), now)


def test_future_incomplete_with_four_vertices_is_shown(now):
    assert is_displayable(_duty(now, end=timedelta(seconds=1)), now)


def test_display_edges(now):
    assert not is_displayable(_duty(now, area=()), now)
    assert is_displayable(_duty(now, end=None), now)
    assert is_displayable(_duty(now, end=timedelta(0)), now)
    assert is_displayable(_duty(now, status="missed"), now)


def test_sweep_targets_only_lapsed_non_terminal(now):
    duties = [
        _duty(now, id="past", end=timedelta(hours=-1)),
        _duty(now, id="future", end=timedelta(hours=1)),
    ]
    assert sweep_expired(duties, now) == [("past", "completed")]


def test_sweep_skips_terminal_unidentified_and_open_ended(now):
    duties = [
        _duty(now, id="a", status="complete", end=timedelta(hours=-1)),
        _duty(now, id="b", status="completed", end=timedelta(hours=-1)),
        _duty(now, id="", end=timedelta(hours=-1)),
        _duty(now, id="c", end=None),
        _duty(now, id="d", status="active", end=timedelta(minutes=-5), area=()),
        _duty(now, id="e", status="missed", end=timedelta(days=-2)),
    ]
    assert sweep_expired(duties, now) == [("d", "completed"), ("e", "completed")]


def test_sweep_candidates_are_never_displayable(now):
    duties = [_duty(now, id=str(i), end=timedelta(minutes=m)) for i, m in enumerate(range(-5, 5))]
    swept = {i for i, _ in sweep_expired(duties, now)}
    shown = {d.id for d in duties if is_displayable(d, now)}
    assert swept and shown
    assert not swept & shown


@pytest.mark.parametrize(
    "status,end,expected",
    [
        ("completed", timedelta(hours=1), EffectiveStatus.COMPLETED),
        ("complete", timedelta(hours=-1), EffectiveStatus.COMPLETED),
        ("active", timedelta(hours=-1), EffectiveStatus.EXPIRED),
        ("missed", timedelta(hours=1), EffectiveStatus.EXPIRED),
        ("active", timedelta(hours=1), EffectiveStatus.ACTIVE),
        ("incomplete", None, EffectiveStatus.INCOMPLETE),
        ("assigned", timedelta(hours=1), EffectiveStatus.INCOMPLETE),
        ("", timedelta(hours=1), EffectiveStatus.UNKNOWN),
    ],
)
def test_classify(now, status, end, expected):
    assert classify(_duty(now, status=status, end=end), now) is expected


def test_partition(now):
    duties = [
        _duty(now, id="active", status="active", end=None),
        _duty(now, id="open", status="incomplete", end=timedelta(hours=1)),
        _duty(now, id="no-end", status="incomplete", end=None),
        _duty(now, id="done", status="complete"),
        _duty(now, id="lapsed", status="incomplete", end=timedelta(0)),
    ]
    active, completed = partition(duties, now)
    assert [d.id for d in active] == ["active", "open"]
    assert [d.id for d in completed] == ["done", "lapsed"]
