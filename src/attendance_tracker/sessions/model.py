from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import SessionStatus


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one date's instantiation of a Schedule."""

    session_id: int
    schedule_id: int
    session_date: date
    status: SessionStatus
    opened_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    locked_by: Optional[int] = None
    created_by: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def is_locked(self) -> bool:
        return self.status == SessionStatus.LOCKED

    @property
    def is_pending(self) -> bool:
        return self.status == SessionStatus.PENDING
