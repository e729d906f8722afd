from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class EarlyLeaveStrategy(AttendanceStrategy):
    """Check-out materially before the scheduled end of shift."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PENDING)

    def decide_checkout(self, *, current: AttendanceStatus, minutes_late: int) -> StatusDecision:
        # A late arrival keeps its lateness on record after leaving early.
        return StatusDecision(status=AttendanceStatus.LEFT_EARLY, minutes_late=minutes_late, note="Left early")
