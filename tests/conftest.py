from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from types import SimpleNamespace
from typing import Optional

import pytest

from attendance_tracker.attendance.locks import InProcessLockManager
from attendance_tracker.attendance.model import AttendanceRecord, BreakEntry
from attendance_tracker.attendance.policy import AttendancePolicy
from attendance_tracker.audit.model import AuditEntry
from attendance_tracker.common.datetime_utils import FrozenClock
from attendance_tracker.container import wire
from attendance_tracker.core.enums import Role, SessionStatus
from attendance_tracker.core.exceptions import ConcurrentModificationError, DuplicateSessionError
from attendance_tracker.schedules.model import BreakWindow, Schedule, ScheduleConfig
from attendance_tracker.sessions.model import AttendanceSession
from attendance_tracker.users.model import User

WORK_DATE = date(2026, 3, 2)

ADMIN_ID = 1
ALICE = 10
BOB = 11
CAROL = 12


class InMemoryUsers:
    def __init__(self, users: list[User]):
        self.users_by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def list_active_employees(self, *, schedule_id: Optional[int] = None):
        return [
            u
            for u in self.users_by_id.values()
            if u.is_active and u.role == Role.EMPLOYEE and (schedule_id is None or u.schedule_id == schedule_id)
        ]


class InMemorySchedules:
    def __init__(self):
        self.items: dict[int, Schedule] = {}

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        return self.items.get(schedule_id)

    def create(self, config: ScheduleConfig) -> int:
        schedule_id = len(self.items) + 1
        self.items[schedule_id] = Schedule(
            schedule_id=schedule_id,
            name=config.name,
            time_in=config.time_in,
            time_out=config.time_out,
            break_window=BreakWindow(config.break_start, config.break_end, config.break_max_minutes),
            grace_period_minutes=config.grace_period_minutes,
            late_threshold_minutes=config.late_threshold_minutes,
            early_leave_threshold_minutes=config.early_leave_threshold_minutes,
        )
        return schedule_id

    def set_active(self, schedule_id: int, *, is_active: bool) -> bool:
        if schedule_id not in self.items:
            return False
        self.items[schedule_id] = replace(self.items[schedule_id], is_active=is_active)
        return True

    def list_active(self):
        return [s for s in self.items.values() if s.is_active]


class InMemorySessions:
    def __init__(self):
        self.items: dict[int, AttendanceSession] = {}
        self._guard = threading.Lock()

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        return self.items.get(session_id)

    def get_for_schedule_and_date(self, *, schedule_id: int, session_date: date):
        return next(
            (s for s in self.items.values() if s.schedule_id == schedule_id and s.session_date == session_date),
            None,
        )

    def find_active_for_date(self, session_date: date):
        return [s for s in self.items.values() if s.session_date == session_date and s.status == SessionStatus.ACTIVE]

    def list_by_status(self, status: SessionStatus):
        return [s for s in self.items.values() if s.status == status]

    def create(self, session: AttendanceSession) -> int:
        if self.get_for_schedule_and_date(schedule_id=session.schedule_id, session_date=session.session_date):
            raise DuplicateSessionError()
        session_id = len(self.items) + 1
        self.items[session_id] = replace(session, session_id=session_id)
        return session_id

    def update(self, session: AttendanceSession) -> bool:
        self.items[session.session_id] = session
        return True

    def mark_active_if_pending(self, session_id: int, *, opened_at: datetime) -> bool:
        with self._guard:
            current = self.items.get(session_id)
            if current is None or current.status != SessionStatus.PENDING:
                return False
            self.items[session_id] = replace(current, status=SessionStatus.ACTIVE, opened_at=opened_at)
            return True


class InMemoryAttendance:
    """Mirrors the (user_id, session_id) unique key of the real table."""

    def __init__(self):
        self.items: dict[int, AttendanceRecord] = {}
        self._guard = threading.Lock()

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.items.get(attendance_id)

    def get_for_user_and_session(self, *, user_id: int, session_id: int):
        return next((r for r in self.items.values() if r.user_id == user_id and r.session_id == session_id), None)

    def list_for_session(self, session_id: int):
        return sorted((r for r in self.items.values() if r.session_id == session_id), key=lambda r: r.user_id)

    def list_open(self):
        return [r for r in self.items.values() if r.time_in is not None and r.time_out is None]

    def create(self, record: AttendanceRecord) -> int:
        with self._guard:
            if self.get_for_user_and_session(user_id=record.user_id, session_id=record.session_id):
                raise ConcurrentModificationError()
            attendance_id = len(self.items) + 1
            self.items[attendance_id] = replace(record, attendance_id=attendance_id)
            return attendance_id

    def update(self, record: AttendanceRecord) -> bool:
        self.items[record.attendance_id] = record
        return True


class InMemoryBreaks:
    def __init__(self):
        self.items: dict[int, BreakEntry] = {}

    def list_for_record(self, attendance_id: int):
        entries = [b for b in self.items.values() if b.attendance_id == attendance_id]
        return sorted(entries, key=lambda b: (b.break_start, b.break_id))

    def get_active_for_record(self, attendance_id: int):
        return next((b for b in self.list_for_record(attendance_id) if b.break_end is None), None)

    def list_active(self):
        return [b for b in self.items.values() if b.break_end is None]

    def create(self, entry: BreakEntry) -> int:
        break_id = len(self.items) + 1
        self.items[break_id] = replace(entry, break_id=break_id)
        return break_id

    def update(self, entry: BreakEntry) -> bool:
        self.items[entry.break_id] = entry
        return True


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> int:
        self.entries.append(entry)
        return len(self.entries)

    def list_for_entity(self, *, entity_type: str, entity_id: int, limit: int = 50):
        found = [e for e in self.entries if e.entity_type == entity_type and e.entity_id == entity_id]
        return list(reversed(found))[:limit]

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


class RecordingDispatcher:
    def __init__(self):
        self.sent = []

    def send(self, event) -> None:
        self.sent.append(event)

    def of_kind(self, kind: str) -> list:
        return [e for e in self.sent if e.kind == kind]


def _users() -> list[User]:
    return [
        User(user_id=ADMIN_ID, full_name="Admin", username="admin", role=Role.ADMIN),
        User(user_id=ALICE, full_name="Alice", username="alice", role=Role.EMPLOYEE, schedule_id=1),
        User(user_id=BOB, full_name="Bob", username="bob", role=Role.EMPLOYEE, schedule_id=1),
        User(user_id=CAROL, full_name="Carol", username="carol", role=Role.EMPLOYEE, schedule_id=2),
    ]


DAY_SCHEDULE = {
    "name": "Day",
    "time_in": "09:00",
    "time_out": "17:00",
    "break_start": "12:00",
    "break_end": "13:00",
    "break_max_minutes": 60,
    "grace_period_minutes": 15,
    "late_threshold_minutes": 30,
}

NIGHT_SCHEDULE = {
    "name": "Night",
    "time_in": "22:00",
    "time_out": "06:00",
    "break_start": "01:00",
    "break_end": "03:00",
    "break_max_minutes": 60,
    "grace_period_minutes": 15,
    "late_threshold_minutes": 30,
}


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 2, 8, 50))


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def policy():
    return AttendancePolicy(lock_timeout_seconds=1.0, auto_checkout=True)


@pytest.fixture
def locks(policy):
    return InProcessLockManager(timeout_seconds=policy.lock_timeout_seconds)


@pytest.fixture
def repos():
    return SimpleNamespace(
        users=InMemoryUsers(_users()),
        schedules=InMemorySchedules(),
        sessions=InMemorySessions(),
        attendance=InMemoryAttendance(),
        breaks=InMemoryBreaks(),
        audit=InMemoryAudit(),
    )


@pytest.fixture
def container(repos, clock, policy, locks, dispatcher):
    return wire(
        users_repo=repos.users,
        schedules_repo=repos.schedules,
        sessions_repo=repos.sessions,
        attendance_repo=repos.attendance,
        breaks_repo=repos.breaks,
        audit_repo=repos.audit,
        locks=locks,
        clock=clock,
        policy=policy,
        dispatcher=dispatcher,
    )


@pytest.fixture
def engine(container):
    return container.attendance_engine


@pytest.fixture
def day_schedule(container):
    # schedule_id 1: Alice and Bob work it by default.
    return container.schedule_service.create_schedule(current_role=Role.ADMIN, config=DAY_SCHEDULE)


@pytest.fixture
def night_schedule(container, day_schedule):
    # schedule_id 2: Carol's shift.
    return container.schedule_service.create_schedule(current_role=Role.ADMIN, config=NIGHT_SCHEDULE)


@pytest.fixture
def open_session(container, clock):
    def _open(schedule, session_date=WORK_DATE, employee_ids=None):
        return container.session_service.activate_session_for_date(
            current_role=Role.ADMIN,
            schedule_id=schedule.schedule_id,
            session_date=session_date,
            employee_ids=employee_ids,
            actor_id=ADMIN_ID,
            now=clock.now(),
        )

    return _open


@pytest.fixture
def day_session(open_session, day_schedule):
    return open_session(day_schedule)
