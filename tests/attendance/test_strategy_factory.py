from datetime import datetime

from attendance_tracker.attendance.factory import AttendanceStrategyFactory
from attendance_tracker.attendance.strategies.early_strategy import EarlyLeaveStrategy
from attendance_tracker.attendance.strategies.late_strategy import LateStrategy
from attendance_tracker.attendance.strategies.normal_strategy import NormalStrategy
from attendance_tracker.core.enums import AttendanceStatus

SHIFT_START = datetime(2026, 3, 2, 9, 0)


def test_factory_checkin_on_time_within_grace():
    factory = AttendanceStrategyFactory()
    now = datetime(2026, 3, 2, 9, 15)
    strategy = factory.for_checkin(now=now, shift_start=SHIFT_START, grace_minutes=15)

    assert isinstance(strategy, NormalStrategy)
    assert strategy.decide_checkin(now=now, shift_start=SHIFT_START, grace_minutes=15).status == AttendanceStatus.PRESENT


def test_factory_checkin_late_after_grace():
    factory = AttendanceStrategyFactory()
    now = datetime(2026, 3, 2, 9, 16)
    strategy = factory.for_checkin(now=now, shift_start=SHIFT_START, grace_minutes=15)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide_checkin(now=now, shift_start=SHIFT_START, grace_minutes=15)
    assert decision.status == AttendanceStatus.LATE
    assert decision.minutes_late == 1


def test_factory_checkin_seconds_past_grace_is_late():
    factory = AttendanceStrategyFactory()
    now = datetime(2026, 3, 2, 9, 15, 1)
    strategy = factory.for_checkin(now=now, shift_start=SHIFT_START, grace_minutes=15)

    assert isinstance(strategy, LateStrategy)
    assert strategy.decide_checkin(now=now, shift_start=SHIFT_START, grace_minutes=15).minutes_late == 1


def test_early_leave_strategy_leaves_checkin_undecided():
    decision = EarlyLeaveStrategy().decide_checkin(
        now=datetime(2026, 3, 2, 9, 0), shift_start=SHIFT_START, grace_minutes=15
    )

    assert decision.status == AttendanceStatus.PENDING
    assert decision.minutes_late == 0


def test_factory_checkout_before_margin_is_early_leave():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkout(
        now=datetime(2026, 3, 2, 16, 29),
        shift_end=datetime(2026, 3, 2, 17, 0),
        early_leave_margin_minutes=30,
        current_status=AttendanceStatus.LATE,
    )

    assert isinstance(strategy, EarlyLeaveStrategy)
    decision = strategy.decide_checkout(current=AttendanceStatus.LATE, minutes_late=7)
    assert decision.status == AttendanceStatus.LEFT_EARLY
    assert decision.minutes_late == 7


def test_factory_checkout_inside_margin_keeps_status():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkout(
        now=datetime(2026, 3, 2, 16, 30),
        shift_end=datetime(2026, 3, 2, 17, 0),
        early_leave_margin_minutes=30,
        current_status=AttendanceStatus.PRESENT,
    )

    assert isinstance(strategy, NormalStrategy)
