from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from attendance_tracker.core.enums import AttendanceStatus, Role

ALICE = 10
BOB = 11


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def tighten_grace(repos, schedule, minutes: int) -> None:
    repos.schedules.items[schedule.schedule_id] = replace(schedule, grace_period_minutes=minutes)


def test_recalculate_follows_edited_grace_period(container, engine, day_session, day_schedule, repos):
    alice = engine.check_in(ALICE, day_session.session_id, now=at(9, 10))
    bob = engine.check_in(BOB, day_session.session_id, now=at(9, 2))
    assert alice.status == AttendanceStatus.PRESENT

    tighten_grace(repos, day_schedule, 5)
    result = container.recalculate_job.run(now=at(12, 0))

    assert result == {"checked": 2, "updated": 1}
    alice = repos.attendance.get_by_id(alice.attendance_id)
    assert alice.status == AttendanceStatus.LATE
    assert alice.minutes_late == 5
    assert repos.attendance.get_by_id(bob.attendance_id).status == AttendanceStatus.PRESENT
    assert "status_recalculated" in repos.audit.actions()


def test_recalculate_is_idempotent(container, engine, day_session, day_schedule, repos):
    engine.check_in(ALICE, day_session.session_id, now=at(9, 10))
    tighten_grace(repos, day_schedule, 5)

    container.recalculate_job.run(now=at(12, 0))
    second = container.recalculate_job.run(now=at(12, 5))

    assert second == {"checked": 1, "updated": 0}


def test_recalculate_keeps_left_early_status(container, engine, day_session, day_schedule, repos):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 10))
    engine.check_out(record.attendance_id, now=at(14, 0))
    tighten_grace(repos, day_schedule, 5)

    updated = engine.recalculate_status(record.attendance_id, now=at(15, 0))

    assert updated.status == AttendanceStatus.LEFT_EARLY
    assert updated.minutes_late == 5


def test_recalculate_skips_locked_sessions(container, engine, day_session, day_schedule, repos):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 10))
    tighten_grace(repos, day_schedule, 5)
    container.session_service.lock(current_role=Role.ADMIN, session_id=day_session.session_id, actor_id=1, now=at(18, 0))

    result = container.recalculate_job.run(day_session.session_id, now=at(18, 5))

    assert result == {"checked": 0, "updated": 0}
    assert engine.recalculate_status(record.attendance_id, now=at(18, 5)) is None
    assert repos.attendance.get_by_id(record.attendance_id).status == AttendanceStatus.PRESENT
