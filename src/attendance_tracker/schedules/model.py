from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..common.datetime_utils import clock_minutes_between, shift_bounds


@dataclass(frozen=True)
class BreakWindow:
    """Clock-time interval in which breaks may start, plus the daily allowance."""

    start: time
    end: time
    max_minutes: int


@dataclass(frozen=True)
class Schedule:
    """Domain entity: a reusable shift template."""

    schedule_id: int
    name: str
    time_in: time
    time_out: time
    break_window: BreakWindow
    grace_period_minutes: int = 0
    late_threshold_minutes: int = 0
    early_leave_threshold_minutes: Optional[int] = None
    is_active: bool = True

    @property
    def is_overnight(self) -> bool:
        return self.time_out <= self.time_in

    @property
    def shift_minutes(self) -> int:
        return clock_minutes_between(self.time_in, self.time_out)

    @property
    def early_leave_margin_minutes(self) -> int:
        if self.early_leave_threshold_minutes is not None:
            return self.early_leave_threshold_minutes
        return self.late_threshold_minutes

    def bounds_for(self, work_date: date) -> tuple[datetime, datetime]:
        return shift_bounds(work_date, self.time_in, self.time_out)

    def opens_at(self, work_date: date) -> datetime:
        """Earliest moment a session for ``work_date`` becomes active."""
        start, _ = self.bounds_for(work_date)
        return start - timedelta(minutes=self.grace_period_minutes)


@dataclass(frozen=True)
class ScheduleConfig:
    """Validated input for creating a schedule."""

    name: str
    time_in: time
    time_out: time
    break_start: time
    break_end: time
    break_max_minutes: int
    grace_period_minutes: int
    late_threshold_minutes: int
    early_leave_threshold_minutes: Optional[int] = None
