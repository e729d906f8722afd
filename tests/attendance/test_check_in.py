from __future__ import annotations

import threading
from datetime import datetime

import pytest

from attendance_tracker.attendance.locks import record_lock_key
from attendance_tracker.core.enums import AttendanceStatus, Role
from attendance_tracker.core.exceptions import (
    AlreadyCheckedInError,
    ConcurrencyError,
    ConcurrentModificationError,
    NotFoundError,
    SessionNotActiveError,
)
from attendance_tracker.notifications.events import AttendanceUpdated

ALICE = 10
BOB = 11


def at(hour: int, minute: int = 0, second: int = 0, day: int = 2) -> datetime:
    return datetime(2026, 3, day, hour, minute, second)


def test_early_arrival_is_present_with_no_lateness(engine, day_session):
    record = engine.check_in(ALICE, day_session.session_id, now=at(8, 50))

    assert record.status == AttendanceStatus.PRESENT
    assert record.minutes_late == 0
    assert record.time_in == at(8, 50)


def test_check_in_at_end_of_grace_is_present(engine, day_session):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 15))

    assert record.status == AttendanceStatus.PRESENT
    assert record.minutes_late == 0


def test_check_in_one_second_past_grace_is_late(engine, day_session):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 15, 1))

    assert record.status == AttendanceStatus.LATE
    assert record.minutes_late == 1


def test_check_in_after_grace_is_late_from_end_of_grace(engine, day_session, dispatcher):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 20))

    assert record.status == AttendanceStatus.LATE
    assert record.minutes_late == 5
    assert "Late by 5 minute(s)" in record.note

    (late,) = dispatcher.of_kind("late_arrival")
    assert late.user_id == ALICE
    assert late.minutes_late == 5


def test_check_in_fills_seeded_pending_record(engine, day_session, repos):
    seeded = repos.attendance.get_for_user_and_session(user_id=ALICE, session_id=day_session.session_id)
    assert seeded.status == AttendanceStatus.PENDING

    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 0))

    assert record.attendance_id == seeded.attendance_id
    assert len(repos.attendance.list_for_session(day_session.session_id)) == 2


def test_check_in_creates_record_lazily(engine, open_session, day_schedule, repos):
    session = open_session(day_schedule, employee_ids=[])
    assert repos.attendance.list_for_session(session.session_id) == []

    record = engine.check_in(ALICE, session.session_id, now=at(9, 0))

    assert record.attendance_id > 0
    assert repos.attendance.get_by_id(record.attendance_id) == record


def test_second_check_in_is_rejected(engine, day_session):
    engine.check_in(ALICE, day_session.session_id, now=at(9, 0))

    with pytest.raises(AlreadyCheckedInError):
        engine.check_in(ALICE, day_session.session_id, now=at(9, 5))


def test_check_in_publishes_event_and_audit(engine, container, day_session, repos):
    seen = []
    container.events.subscribe(AttendanceUpdated, seen.append)

    engine.check_in(ALICE, day_session.session_id, now=at(9, 0))

    assert [e.action for e in seen] == ["checked_in"]
    assert "check_in" in repos.audit.actions()


def test_unknown_employee_is_not_found(engine, day_session):
    with pytest.raises(NotFoundError):
        engine.check_in(999, day_session.session_id, now=at(9, 0))


def test_pending_session_rejects_check_in_until_it_opens(engine, open_session, day_schedule, clock):
    clock.set(at(7, 0))
    session = open_session(day_schedule)
    assert session.is_pending

    with pytest.raises(SessionNotActiveError):
        engine.check_in(ALICE, session.session_id, now=at(8, 44))

    # Opens at time_in minus grace; check-in promotes the session on the way.
    record = engine.check_in(ALICE, session.session_id, now=at(8, 45))
    assert record.status == AttendanceStatus.PRESENT


def test_locked_session_rejects_check_in(engine, container, day_session):
    container.session_service.lock(current_role=Role.ADMIN, session_id=day_session.session_id, actor_id=1, now=at(9, 0))

    with pytest.raises(SessionNotActiveError):
        engine.check_in(ALICE, day_session.session_id, now=at(9, 1))


def test_can_check_in_reports_without_changing_anything(engine, day_session, repos):
    before = dict(repos.attendance.items)

    eligibility = engine.can_check_in(ALICE, day_session.session_id, now=at(9, 30))

    assert eligibility.allowed
    assert eligibility.expected_status == AttendanceStatus.LATE
    assert eligibility.minutes_late == 15
    assert repos.attendance.items == before

    engine.check_in(ALICE, day_session.session_id, now=at(9, 30))
    eligibility = engine.can_check_in(ALICE, day_session.session_id, now=at(9, 31))
    assert not eligibility.allowed
    assert eligibility.reason == "already_checked_in"


def test_can_check_in_on_pending_session(engine, open_session, day_schedule, clock):
    clock.set(at(7, 0))
    session = open_session(day_schedule)

    eligibility = engine.can_check_in(ALICE, session.session_id, now=at(8, 0))

    assert not eligibility.allowed
    assert eligibility.reason == "session_pending"


def test_concurrent_check_in_creates_exactly_one_record(engine, open_session, day_schedule, repos):
    session = open_session(day_schedule, employee_ids=[])
    barrier = threading.Barrier(2)
    outcomes = []

    def attempt():
        barrier.wait()
        try:
            engine.check_in(BOB, session.session_id, now=at(9, 0))
            outcomes.append("ok")
        except (AlreadyCheckedInError, ConcurrencyError) as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert len(outcomes) == 2
    assert len(repos.attendance.list_for_session(session.session_id)) == 1


def test_lock_wait_is_bounded(engine, locks, day_session):
    with locks.hold(record_lock_key(ALICE, day_session.session_id)):
        with pytest.raises(ConcurrentModificationError):
            engine.check_in(ALICE, day_session.session_id, now=at(9, 0))


def test_failing_notification_does_not_undo_check_in(container, day_session, repos, monkeypatch):
    def boom(event):
        raise RuntimeError("mail server down")

    monkeypatch.setattr(container.dispatcher, "send", boom)

    record = container.attendance_engine.check_in(ALICE, day_session.session_id, now=at(9, 40))

    assert record.status == AttendanceStatus.LATE
    assert repos.attendance.get_by_id(record.attendance_id).time_in == at(9, 40)
