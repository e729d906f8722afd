from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import AttendanceSession


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_for_schedule_and_date(self, *, schedule_id: int, session_date: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def find_active_for_date(self, session_date: date) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def list_by_status(self, status: SessionStatus) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def create(self, session: AttendanceSession) -> int:
        """Insert a session.

        Raises DuplicateSessionError when (schedule_id, session_date) is taken.
        Returns session_id.
        """

        raise NotImplementedError

    def update(self, session: AttendanceSession) -> bool:
        raise NotImplementedError

    def mark_active_if_pending(self, session_id: int, *, opened_at: datetime) -> bool:
        """Flip a pending session to active.

        Returns False when the session was no longer pending, so only one
        caller wins a concurrent promotion.
        """

        raise NotImplementedError
