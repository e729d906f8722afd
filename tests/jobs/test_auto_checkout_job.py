from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from attendance_tracker.attendance.service import AUTO_CHECKOUT_NOTE
from attendance_tracker.core.enums import AttendanceStatus
from attendance_tracker.jobs.auto_checkout import AutoCheckoutJob

ALICE = 10


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def test_open_record_is_closed_at_shift_end(container, engine, day_session, repos):
    record = engine.check_in(ALICE, day_session.session_id, now=at(8, 50))

    assert container.auto_checkout_job.run(now=at(17, 59)) == {"checked": 1, "checked_out": 0}
    result = container.auto_checkout_job.run(now=at(18, 1))

    assert result == {"checked": 1, "checked_out": 1}
    record = repos.attendance.get_by_id(record.attendance_id)
    assert record.time_out == at(17, 0)
    assert record.auto_checkout is True
    assert AUTO_CHECKOUT_NOTE in record.note
    assert record.status == AttendanceStatus.PRESENT
    assert record.hours_worked == Decimal("8.17")


def test_auto_checkout_closes_open_break(container, engine, day_session, repos):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 0))
    engine.start_break(record.attendance_id, now=at(12, 0))

    container.auto_checkout_job.run(now=at(18, 30))

    (entry,) = repos.breaks.list_for_record(record.attendance_id)
    assert entry.break_end == at(17, 0)
    assert repos.attendance.get_by_id(record.attendance_id).time_out == at(17, 0)


def test_auto_checkout_disabled_by_policy(container, engine, day_session, repos):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 0))
    job = AutoCheckoutJob(engine, repos.attendance, policy=replace(container.policy, auto_checkout=False))

    assert job.run(now=at(23, 0))["checked_out"] == 0
    assert repos.attendance.get_by_id(record.attendance_id).time_out is None
