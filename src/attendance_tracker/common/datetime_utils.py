from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Protocol

from ..core.constants import MINUTES_PER_DAY


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def parse_clock_time(value: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into a time of day."""
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    return datetime.strptime(value.strip(), fmt).time()


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Current local time."""

    def now(self) -> datetime:
        return datetime.now()


@dataclass
class FrozenClock:
    """Clock pinned to a given instant; tests move it with ``advance``."""

    current: datetime = field(default_factory=datetime.now)

    def now(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, *, minutes: float = 0, seconds: float = 0) -> datetime:
        self.current = self.current + timedelta(minutes=minutes, seconds=seconds)
        return self.current


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end; a negative span wraps by one day."""
    minutes = int((end - start).total_seconds() // 60)
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes


def seconds_between(start: datetime, end: datetime) -> int:
    seconds = int((end - start).total_seconds())
    if seconds < 0:
        seconds += MINUTES_PER_DAY * 60
    return seconds


def clock_minutes_between(start: time, end: time) -> int:
    """Minutes between two times of day, treating end <= start as next day."""
    raw = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if raw <= 0:
        raw += MINUTES_PER_DAY
    return raw


def shift_bounds(work_date: date, time_in: time, time_out: time) -> tuple[datetime, datetime]:
    """Concrete start/end of a shift that begins on ``work_date``.

    Overnight shifts (time_out at or before time_in) end on the following day.
    """
    start = datetime.combine(work_date, time_in)
    end = datetime.combine(work_date, time_out)
    if end <= start:
        end += timedelta(days=1)
    return start, end


def time_in_window(moment: time, start: time, end: time) -> bool:
    """Inclusive window check on times of day, wrapping past midnight."""
    if start <= end:
        return start <= moment <= end
    return moment >= start or moment <= end
