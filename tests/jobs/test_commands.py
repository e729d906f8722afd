from __future__ import annotations

from datetime import datetime

import pytest

from attendance_tracker.core.enums import AttendanceStatus
from attendance_tracker.main import create_app

ALICE = 10
BOB = 11


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


@pytest.fixture
def runner(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container).test_cli_runner()


def test_end_expired_breaks_command(runner, engine, day_session, clock, repos):
    record = engine.check_in(ALICE, day_session.session_id, now=at(9, 0))
    engine.start_break(record.attendance_id, now=at(12, 0))
    clock.set(at(13, 15))

    result = runner.invoke(args=["attendance", "end-expired-breaks"])

    assert result.exit_code == 0
    assert "end-expired-breaks: checked=1, force_ended=1" in result.output
    assert repos.attendance.get_by_id(record.attendance_id).break_end == at(13, 0)


def test_mark_absent_command_for_one_session(runner, engine, day_session, clock, repos):
    engine.check_in(ALICE, day_session.session_id, now=at(9, 0))
    clock.set(at(18, 30))

    result = runner.invoke(args=["attendance", "mark-absent", "--session-id", str(day_session.session_id)])

    assert result.exit_code == 0
    assert "marked_absent=1" in result.output
    bob = repos.attendance.get_for_user_and_session(user_id=BOB, session_id=day_session.session_id)
    assert bob.status == AttendanceStatus.ABSENT


def test_recalculate_status_command(runner, engine, day_session, clock):
    engine.check_in(ALICE, day_session.session_id, now=at(9, 0))
    clock.set(at(12, 0))

    result = runner.invoke(args=["attendance", "recalculate-status"])

    assert result.exit_code == 0
    assert "recalculate-status: checked=1, updated=0" in result.output
