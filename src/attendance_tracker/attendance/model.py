from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus, BreakType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one session.

    ``break_start``/``break_end`` mirror the most recent BreakEntry so simple
    readers do not need to load the break history.
    """

    attendance_id: int
    user_id: int
    session_id: int
    attendance_date: date
    status: AttendanceStatus
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    minutes_late: int = 0
    hours_worked: Decimal = Decimal("0.00")
    note: Optional[str] = None
    auto_checkout: bool = False

    @property
    def has_checked_in(self) -> bool:
        return self.time_in is not None

    @property
    def has_checked_out(self) -> bool:
        return self.time_out is not None

    @property
    def is_on_break(self) -> bool:
        return self.break_start is not None and self.break_end is None

    def snapshot(self) -> dict:
        return {
            "status": self.status.value,
            "time_in": self.time_in,
            "time_out": self.time_out,
            "break_start": self.break_start,
            "break_end": self.break_end,
            "minutes_late": self.minutes_late,
            "hours_worked": str(self.hours_worked),
        }


@dataclass(frozen=True)
class BreakEntry:
    """One break taken against an attendance record.

    ``duration_minutes`` is the allowed part of the break (never above
    ``duration_limit``); anything beyond the limit is kept in ``penalty_minutes``.
    """

    break_id: int
    attendance_id: int
    user_id: int
    break_type: BreakType
    break_start: datetime
    duration_limit: int
    break_end: Optional[datetime] = None
    duration_minutes: int = 0
    penalty_minutes: int = 0

    @property
    def is_active(self) -> bool:
        return self.break_end is None

    @property
    def total_minutes(self) -> int:
        return self.duration_minutes + self.penalty_minutes
