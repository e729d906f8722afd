"""Break rules: when a break may start, how long it may last, how it closes.

Everything here is a pure function of the schedule, the record, its break
history and the current time; persistence is left to the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import minutes_between, time_in_window
from ..core.constants import BREAK_TYPE_LIMITS, DEFAULT_BREAK_SWEEP_TOLERANCE_MINUTES
from ..core.enums import BreakType
from ..core.exceptions import (
    AlreadyCheckedOutError,
    BreakAlreadyActiveError,
    BreakAlreadyUsedError,
    NotCheckedInError,
    OutsideBreakWindowError,
    PolicyViolationError,
    ValidationError,
)
from ..schedules.model import Schedule
from .model import AttendanceRecord, BreakEntry


@dataclass(frozen=True)
class ClosedBreak:
    entry: BreakEntry
    excess_minutes: int


@dataclass(frozen=True)
class BreakStatus:
    """Read model answering "can I take a break now?"."""

    can_start: bool
    can_end: bool
    reason: str
    message: str
    used_minutes: int
    remaining_minutes: int
    remaining_seconds: int
    active_break: Optional[BreakEntry] = None


class BreakWindowPolicy:
    def __init__(
        self,
        *,
        max_breaks_per_day: int = 1,
        type_limits: Optional[Mapping[BreakType, int]] = None,
        sweep_tolerance_minutes: int = DEFAULT_BREAK_SWEEP_TOLERANCE_MINUTES,
    ):
        self._max_breaks = max(1, int(max_breaks_per_day))
        self._type_limits = dict(BREAK_TYPE_LIMITS if type_limits is None else type_limits)
        self._tolerance = int(sweep_tolerance_minutes)

    def is_within_window(self, schedule: Schedule, now: datetime) -> bool:
        window = schedule.break_window
        return time_in_window(now.time(), window.start, window.end)

    @staticmethod
    def used_minutes(breaks: Sequence[BreakEntry]) -> int:
        return sum(b.duration_minutes for b in breaks if b.break_end is not None)

    def remaining_minutes(self, schedule: Schedule, breaks: Sequence[BreakEntry]) -> int:
        return max(0, schedule.break_window.max_minutes - self.used_minutes(breaks))

    def check_start(
        self,
        *,
        schedule: Schedule,
        record: AttendanceRecord,
        breaks: Sequence[BreakEntry],
        now: datetime,
        break_type: BreakType = BreakType.REGULAR,
    ) -> int:
        """Authorize a break start; returns the duration limit of the new break."""
        if not record.has_checked_in:
            raise NotCheckedInError("You must time in before starting a break")
        if record.has_checked_out:
            raise AlreadyCheckedOutError("Cannot take a break after timing out")
        if not self.is_within_window(schedule, now):
            window = schedule.break_window
            raise OutsideBreakWindowError(
                f"Breaks are allowed between {window.start:%H:%M} and {window.end:%H:%M}"
            )

        if breaks and self._max_breaks == 1:
            raise BreakAlreadyUsedError()
        if any(b.is_active for b in breaks):
            raise BreakAlreadyActiveError()
        if len(breaks) >= self._max_breaks:
            raise BreakAlreadyUsedError(f"You have already taken {len(breaks)} break(s) today")

        remaining = self.remaining_minutes(schedule, breaks)
        if remaining <= 0:
            raise BreakAlreadyUsedError("Your break allowance for today is used up")

        type_limit = self._type_limits.get(break_type)
        return min(type_limit, remaining) if type_limit else remaining

    @staticmethod
    def close(entry: BreakEntry, end: datetime) -> ClosedBreak:
        """End a break at ``end``; overage is recorded, never refused."""
        if end <= entry.break_start:
            raise ValidationError("Break end must be after break start")
        elapsed = minutes_between(entry.break_start, end)
        excess = max(0, elapsed - entry.duration_limit)
        closed = replace(
            entry,
            break_end=end,
            duration_minutes=min(elapsed, entry.duration_limit),
            penalty_minutes=excess,
        )
        return ClosedBreak(entry=closed, excess_minutes=excess)

    def is_overdue(self, entry: BreakEntry, now: datetime) -> bool:
        if not entry.is_active:
            return False
        return minutes_between(entry.break_start, now) > entry.duration_limit + self._tolerance

    @staticmethod
    def force_close(entry: BreakEntry, now: datetime) -> ClosedBreak:
        """End an overdue break at exactly its limit.

        The reported excess is measured up to ``now``.
        """
        elapsed = minutes_between(entry.break_start, now)
        closed = replace(
            entry,
            break_end=entry.break_start + timedelta(minutes=entry.duration_limit),
            duration_minutes=entry.duration_limit,
            penalty_minutes=0,
        )
        return ClosedBreak(entry=closed, excess_minutes=max(0, elapsed - entry.duration_limit))

    def status(
        self,
        *,
        schedule: Schedule,
        record: AttendanceRecord,
        breaks: Sequence[BreakEntry],
        now: datetime,
    ) -> BreakStatus:
        used = self.used_minutes(breaks)
        remaining = self.remaining_minutes(schedule, breaks)
        active = next((b for b in breaks if b.is_active), None)

        if active is not None and not record.has_checked_out:
            elapsed_seconds = max(0, int((now - active.break_start).total_seconds()))
            return BreakStatus(
                can_start=False,
                can_end=True,
                reason="on_break",
                message="You are currently on break.",
                used_minutes=used,
                remaining_minutes=remaining,
                remaining_seconds=max(0, active.duration_limit * 60 - elapsed_seconds),
                active_break=active,
            )

        try:
            self.check_start(schedule=schedule, record=record, breaks=breaks, now=now)
        except PolicyViolationError as e:
            return BreakStatus(
                can_start=False,
                can_end=False,
                reason=e.code.lower(),
                message=e.message,
                used_minutes=used,
                remaining_minutes=remaining,
                remaining_seconds=0,
            )

        return BreakStatus(
            can_start=True,
            can_end=False,
            reason="available",
            message="You may start a break.",
            used_minutes=used,
            remaining_minutes=remaining,
            remaining_seconds=0,
        )
