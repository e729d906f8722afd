from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time (or early) check-in, normal check-out."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, minutes_late=0)

    def decide_checkout(self, *, current: AttendanceStatus, minutes_late: int) -> StatusDecision:
        return StatusDecision(status=current, minutes_late=minutes_late)
