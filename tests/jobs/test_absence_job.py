from __future__ import annotations

from datetime import datetime

from attendance_tracker.core.enums import AttendanceStatus, Role

ALICE = 10
BOB = 11
CAROL = 12


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def test_absence_waits_for_cutoff(container, day_session, repos):
    # Shift ends 17:00, cutoff one hour later.
    result = container.absence_job.run(now=at(17, 59))

    assert result == {"sessions_processed": 0, "marked_absent": 0}
    assert all(r.status == AttendanceStatus.PENDING for r in repos.attendance.list_for_session(day_session.session_id))


def test_absence_marks_only_missing_users(container, engine, day_session, repos, dispatcher):
    engine.check_in(ALICE, day_session.session_id, now=at(9, 0))

    result = container.absence_job.run(now=at(18, 30))

    assert result["marked_absent"] == 1
    bob = repos.attendance.get_for_user_and_session(user_id=BOB, session_id=day_session.session_id)
    alice = repos.attendance.get_for_user_and_session(user_id=ALICE, session_id=day_session.session_id)
    assert bob.status == AttendanceStatus.ABSENT
    assert alice.status == AttendanceStatus.PRESENT
    assert [n.user_id for n in dispatcher.of_kind("absent")] == [BOB]
    assert "auto_mark_absent" in repos.audit.actions()


def test_absence_run_twice_is_idempotent(container, day_session, repos, dispatcher):
    container.absence_job.run(now=at(18, 30))
    second = container.absence_job.run(now=at(19, 0))

    assert second["marked_absent"] == 0
    records = repos.attendance.list_for_session(day_session.session_id)
    assert sorted(r.user_id for r in records) == [ALICE, BOB]
    assert all(r.status == AttendanceStatus.ABSENT for r in records)
    assert len(dispatcher.of_kind("absent")) == 2


def test_absence_covers_expected_users_without_a_record(container, open_session, day_schedule, repos):
    session = open_session(day_schedule, employee_ids=[ALICE])
    assert repos.attendance.get_for_user_and_session(user_id=BOB, session_id=session.session_id) is None

    container.absence_job.run(session.session_id, now=at(18, 30))

    bob = repos.attendance.get_for_user_and_session(user_id=BOB, session_id=session.session_id)
    assert bob.status == AttendanceStatus.ABSENT
    # Carol works another schedule.
    assert repos.attendance.get_for_user_and_session(user_id=CAROL, session_id=session.session_id) is None


def test_absence_skips_locked_sessions(container, day_session, repos):
    container.session_service.lock(current_role=Role.ADMIN, session_id=day_session.session_id, actor_id=1, now=at(17, 30))

    result = container.absence_job.run(now=at(18, 30))

    assert result["marked_absent"] == 0
    assert all(r.status == AttendanceStatus.PENDING for r in repos.attendance.list_for_session(day_session.session_id))


def test_absence_covers_session_nobody_opened(container, open_session, day_schedule, repos, clock):
    clock.set(datetime(2026, 3, 1, 20, 0))
    session = open_session(day_schedule)
    assert session.is_pending

    result = container.absence_job.run(session.session_id, now=at(19, 0))

    assert result == {"sessions_processed": 1, "marked_absent": 2}
    records = repos.attendance.list_for_session(session.session_id)
    assert [r.status for r in records] == [AttendanceStatus.ABSENT, AttendanceStatus.ABSENT]
    assert container.session_service.get(session.session_id).is_active


def test_absence_sweep_picks_up_pending_sessions(container, open_session, day_schedule, repos, clock):
    clock.set(datetime(2026, 3, 1, 20, 0))
    session = open_session(day_schedule)

    result = container.absence_job.run(now=at(19, 0))

    assert result["marked_absent"] == 2
    assert "session_activated" in repos.audit.actions()
