from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..audit.repository import AuditTrail
from ..common.datetime_utils import Clock, SystemClock
from ..core.enums import AttendanceStatus, Role, SessionStatus
from ..core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    DuplicateSessionError,
    InvalidSessionTransitionError,
    NotFoundError,
    ValidationError,
)
from ..notifications.dispatcher import EventBus
from ..notifications.events import SessionUpdated
from ..schedules.model import Schedule
from ..schedules.repository import ScheduleRepository
from ..users.repository import UserRepository
from .model import AttendanceSession
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionService:
    """Session lifecycle: pending -> active -> locked (and back to active on unlock).

    Sessions are looked up explicitly by id or date; there is no implicit
    "current session".
    """

    def __init__(
        self,
        sessions: SessionRepository,
        schedules: ScheduleRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
        audit: Optional[AuditTrail] = None,
    ):
        self._sessions = sessions
        self._schedules = schedules
        self._attendance = attendance
        self._users = users
        self._clock = clock or SystemClock()
        self._events = events or EventBus()
        self._audit = audit

    def get(self, session_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        return session

    def schedule_for(self, session: AttendanceSession) -> Schedule:
        schedule = self._schedules.get_by_id(session.schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def find_active_for_date(self, session_date: date) -> Sequence[AttendanceSession]:
        return self._sessions.find_active_for_date(session_date)

    def list_active(self) -> Sequence[AttendanceSession]:
        return self._sessions.list_by_status(SessionStatus.ACTIVE)

    def list_pending(self) -> Sequence[AttendanceSession]:
        return self._sessions.list_by_status(SessionStatus.PENDING)

    def expected_user_ids(self, session: AttendanceSession) -> List[int]:
        """Active employees whose default shift is this session's schedule."""
        return [u.user_id for u in self._users.list_active_employees(schedule_id=session.schedule_id)]

    def activate_session_for_date(
        self,
        *,
        current_role: Role,
        schedule_id: int,
        session_date: date,
        employee_ids: Optional[Iterable[int]] = None,
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceSession:
        """Create the session of ``schedule_id`` for ``session_date``.

        The session starts active when its opening time (shift start minus
        grace) has been reached, otherwise pending. Pending attendance rows are
        seeded for ``employee_ids``, or for the schedule's active employees when
        none are given.
        """
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can open sessions")

        now = now or self._clock.now()
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        if not schedule.is_active:
            raise ValidationError("Schedule is inactive")

        if self._sessions.get_for_schedule_and_date(schedule_id=schedule.schedule_id, session_date=session_date):
            raise DuplicateSessionError()

        is_due = now >= schedule.opens_at(session_date)
        draft = AttendanceSession(
            session_id=0,
            schedule_id=schedule.schedule_id,
            session_date=session_date,
            status=SessionStatus.ACTIVE if is_due else SessionStatus.PENDING,
            opened_at=now if is_due else None,
            created_by=actor_id,
        )
        session = replace(draft, session_id=self._sessions.create(draft))
        logger.info(
            "Session %s created for schedule %s on %s (%s)",
            session.session_id,
            schedule.schedule_id,
            session_date.isoformat(),
            session.status.value,
            extra={"session_id": session.session_id},
        )

        if employee_ids is None:
            employee_ids = [u.user_id for u in self._users.list_active_employees(schedule_id=schedule.schedule_id)]
        seeded = self.seed_pending_records(session, employee_ids)

        self._record_audit(
            "session_created",
            f"Created session for {schedule.name} on {session_date.isoformat()}",
            session,
            at=now,
            actor_id=actor_id,
            new_values={"status": session.status.value, "seeded_records": seeded},
        )
        self._events.publish(SessionUpdated(session=session, action="created"))
        return session

    def seed_pending_records(self, session: AttendanceSession, user_ids: Iterable[int]) -> int:
        created = 0
        for user_id in dict.fromkeys(int(u) for u in user_ids):
            if self._attendance.get_for_user_and_session(user_id=user_id, session_id=session.session_id):
                continue
            try:
                self._attendance.create(
                    AttendanceRecord(
                        attendance_id=0,
                        user_id=user_id,
                        session_id=session.session_id,
                        attendance_date=session.session_date,
                        status=AttendanceStatus.PENDING,
                    )
                )
            except ConcurrentModificationError:
                # A concurrent check-in created the row first.
                logger.debug("Record for user %s in session %s already exists", user_id, session.session_id)
                continue
            created += 1
        return created

    def refresh(self, session: AttendanceSession, now: Optional[datetime] = None) -> AttendanceSession:
        """Promote a pending session whose opening time has passed."""
        if not session.is_pending:
            return session

        now = now or self._clock.now()
        schedule = self.schedule_for(session)
        if now < schedule.opens_at(session.session_date):
            return session

        if not self._sessions.mark_active_if_pending(session.session_id, opened_at=now):
            # Another caller promoted it first.
            return self.get(session.session_id)

        activated = replace(session, status=SessionStatus.ACTIVE, opened_at=now)
        logger.info("Session %s activated", session.session_id, extra={"session_id": session.session_id})
        self._record_audit("session_activated", "Session opened for attendance", activated, at=now)
        self._events.publish(SessionUpdated(session=activated, action="activated"))
        return activated

    def activate_due(self, now: Optional[datetime] = None) -> List[AttendanceSession]:
        now = now or self._clock.now()
        activated = []
        for session in self._sessions.list_by_status(SessionStatus.PENDING):
            refreshed = self.refresh(session, now)
            if refreshed.is_active:
                activated.append(refreshed)
        return activated

    def lock(self, *, current_role: Role, session_id: int, actor_id: Optional[int] = None, now: Optional[datetime] = None) -> AttendanceSession:
        """Freeze a session; its records accept no further changes."""
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can lock sessions")

        session = self.get(session_id)
        if session.is_locked:
            raise InvalidSessionTransitionError("Session is already locked")

        now = now or self._clock.now()
        locked = replace(session, status=SessionStatus.LOCKED, locked_at=now, locked_by=actor_id)
        self._sessions.update(locked)
        logger.info("Session %s locked by %s", session.session_id, actor_id, extra={"session_id": session.session_id})
        self._record_audit(
            "session_locked",
            "Session locked",
            locked,
            at=now,
            actor_id=actor_id,
            old_values={"status": session.status.value},
            new_values={"status": locked.status.value},
        )
        self._events.publish(SessionUpdated(session=locked, action="locked"))
        return locked

    def unlock(self, *, current_role: Role, session_id: int, actor_id: Optional[int] = None, now: Optional[datetime] = None) -> AttendanceSession:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can unlock sessions")

        session = self.get(session_id)
        if not session.is_locked:
            raise InvalidSessionTransitionError("Session is not locked")

        now = now or self._clock.now()
        unlocked = replace(
            session,
            status=SessionStatus.ACTIVE,
            opened_at=session.opened_at or now,
            locked_at=None,
            locked_by=None,
        )
        self._sessions.update(unlocked)
        logger.info("Session %s unlocked by %s", session.session_id, actor_id, extra={"session_id": session.session_id})
        self._record_audit(
            "session_unlocked",
            "Session unlocked",
            unlocked,
            at=now,
            actor_id=actor_id,
            old_values={"status": session.status.value},
            new_values={"status": unlocked.status.value},
        )
        self._events.publish(SessionUpdated(session=unlocked, action="unlocked"))
        return unlocked

    def _record_audit(self, action: str, description: str, session: AttendanceSession, *, at: datetime, **kwargs) -> None:
        if self._audit is None:
            return
        self._audit.record(
            action,
            description,
            entity_type="attendance_session",
            entity_id=session.session_id,
            at=at,
            **kwargs,
        )
