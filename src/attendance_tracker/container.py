from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.break_policy import BreakWindowPolicy
from .attendance.factory import AttendanceStrategyFactory
from .attendance.locks import InProcessLockManager, MySQLNamedLockManager, RecordLockManager
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLBreakRepository
from .attendance.policy import AttendancePolicy
from .attendance.repository import AttendanceRepository, BreakRepository
from .attendance.service import AttendanceEngine
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository, AuditTrail
from .common.datetime_utils import Clock, SystemClock
from .database.connection import DBConfig, DatabaseConnection
from .jobs.absence import AbsenceJob
from .jobs.auto_checkout import AutoCheckoutJob
from .jobs.break_sweep import BreakSweepJob
from .jobs.recalculate import RecalculateStatusJob
from .notifications.dispatcher import EventBus, LoggingNotificationDispatcher, NotificationDispatcher
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    clock: Clock
    policy: AttendancePolicy
    events: EventBus
    dispatcher: NotificationDispatcher

    users_repo: UserRepository
    schedules_repo: ScheduleRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    breaks_repo: BreakRepository
    audit_repo: AuditRepository

    schedule_service: ScheduleService
    session_service: SessionService
    attendance_engine: AttendanceEngine

    absence_job: AbsenceJob
    break_sweep_job: BreakSweepJob
    auto_checkout_job: AutoCheckoutJob
    recalculate_job: RecalculateStatusJob


def wire(
    *,
    users_repo: UserRepository,
    schedules_repo: ScheduleRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    breaks_repo: BreakRepository,
    audit_repo: AuditRepository,
    locks: RecordLockManager | None = None,
    clock: Clock | None = None,
    policy: AttendancePolicy | None = None,
    dispatcher: NotificationDispatcher | None = None,
    events: EventBus | None = None,
) -> Container:
    """Assemble services and jobs on top of the given repositories."""
    clock = clock or SystemClock()
    policy = policy or AttendancePolicy()
    dispatcher = dispatcher or LoggingNotificationDispatcher()
    events = events or EventBus()
    locks = locks or InProcessLockManager(timeout_seconds=policy.lock_timeout_seconds)
    audit = AuditTrail(audit_repo)

    schedule_service = ScheduleService(schedules_repo)
    session_service = SessionService(
        sessions_repo,
        schedules_repo,
        attendance_repo,
        users_repo,
        clock=clock,
        events=events,
        audit=audit,
    )
    attendance_engine = AttendanceEngine(
        attendance_repo,
        breaks_repo,
        session_service,
        users_repo,
        clock=clock,
        locks=locks,
        dispatcher=dispatcher,
        events=events,
        audit=audit,
        policy=policy,
        strategy_factory=AttendanceStrategyFactory(),
        break_policy=BreakWindowPolicy(
            max_breaks_per_day=policy.max_breaks_per_day,
            sweep_tolerance_minutes=policy.break_sweep_tolerance_minutes,
        ),
    )

    return Container(
        clock=clock,
        policy=policy,
        events=events,
        dispatcher=dispatcher,
        users_repo=users_repo,
        schedules_repo=schedules_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        breaks_repo=breaks_repo,
        audit_repo=audit_repo,
        schedule_service=schedule_service,
        session_service=session_service,
        attendance_engine=attendance_engine,
        absence_job=AbsenceJob(attendance_engine, session_service, attendance_repo, clock=clock, policy=policy),
        break_sweep_job=BreakSweepJob(attendance_engine, breaks_repo, clock=clock, policy=policy),
        auto_checkout_job=AutoCheckoutJob(attendance_engine, attendance_repo, clock=clock, policy=policy),
        recalculate_job=RecalculateStatusJob(attendance_engine, session_service, attendance_repo, clock=clock),
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    policy = AttendancePolicy.from_settings(settings) if settings is not None else AttendancePolicy()

    if str(getattr(settings, "LOCK_BACKEND", "memory")).lower() == "mysql":
        locks: RecordLockManager = MySQLNamedLockManager(conn, timeout_seconds=policy.lock_timeout_seconds)
    else:
        locks = InProcessLockManager(timeout_seconds=policy.lock_timeout_seconds)

    return wire(
        users_repo=MySQLUserRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        breaks_repo=MySQLBreakRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        locks=locks,
        policy=policy,
    )
