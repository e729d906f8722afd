from datetime import date, datetime, time

import pytest

from attendance_tracker.attendance.metrics import compute_hours_worked, elapsed_since
from attendance_tracker.common.datetime_utils import (
    FrozenClock,
    clock_minutes_between,
    minutes_between,
    parse_clock_time,
    shift_bounds,
    time_in_window,
)


def test_clock_minutes_wrap_past_midnight():
    assert clock_minutes_between(time(22, 0), time(6, 0)) == 480
    assert clock_minutes_between(time(9, 0), time(17, 30)) == 510


def test_minutes_between_wraps_negative_spans():
    assert minutes_between(datetime(2026, 3, 2, 23, 0), datetime(2026, 3, 2, 1, 0)) == 120


def test_shift_bounds_for_overnight_shift():
    start, end = shift_bounds(date(2026, 3, 2), time(22, 0), time(6, 0))

    assert start == datetime(2026, 3, 2, 22, 0)
    assert end == datetime(2026, 3, 3, 6, 0)


@pytest.mark.parametrize(
    "moment, expected",
    [(time(12, 0), True), (time(13, 0), True), (time(13, 0, 1), False), (time(11, 59, 59), False)],
)
def test_time_in_window_is_inclusive(moment, expected):
    assert time_in_window(moment, time(12, 0), time(13, 0)) is expected


def test_parse_clock_time():
    assert parse_clock_time("07:45") == time(7, 45)
    assert parse_clock_time("07:45:30") == time(7, 45, 30)


def test_frozen_clock_advances():
    clock = FrozenClock(datetime(2026, 3, 2, 9, 0))

    clock.advance(minutes=90)

    assert clock.now() == datetime(2026, 3, 2, 10, 30)


def test_elapsed_is_clamped_at_zero():
    assert elapsed_since(datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 8, 30)) == 0
    assert elapsed_since(datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 9, 20, 59)) == 20


def test_hours_worked_never_negative():
    hours = compute_hours_worked(datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 9, 30), 45)

    assert str(hours) == "0.00"
