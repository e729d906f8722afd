from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..common.datetime_utils import minutes_between, seconds_between
from .model import AttendanceRecord, BreakEntry

_TWO_PLACES = Decimal("0.01")


def elapsed_since(start: datetime, now: datetime) -> int:
    """Whole minutes from start to now, clamped at zero (early is not negative)."""
    return max(0, int((now - start).total_seconds() // 60))


def total_break_minutes(record: AttendanceRecord, breaks: Iterable[BreakEntry]) -> int:
    """Closed break time of a record, including overage.

    Falls back to the record's own break_start/break_end when no break
    entries exist (records written before break entries were tracked).
    """
    closed = [b for b in breaks if b.break_end is not None]
    if closed:
        return sum(b.total_minutes for b in closed)
    if record.break_start and record.break_end:
        return minutes_between(record.break_start, record.break_end)
    return 0


def compute_hours_worked(time_in: Optional[datetime], time_out: Optional[datetime], break_minutes: int) -> Decimal:
    """max(0, gross - breaks) / 60, rounded to two decimals."""
    if time_in is None or time_out is None:
        return Decimal("0.00")
    gross_minutes = Decimal(seconds_between(time_in, time_out)) / Decimal(60)
    net_minutes = max(Decimal(0), gross_minutes - Decimal(int(break_minutes)))
    return (net_minutes / Decimal(60)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
