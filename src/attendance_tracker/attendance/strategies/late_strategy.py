from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..metrics import elapsed_since
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Check-in after the grace period; lateness is counted from the end of grace.

    A partial first minute past grace still counts as one minute late.
    """

    def decide_checkin(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> StatusDecision:
        minutes_late = max(1, elapsed_since(shift_start, now) - grace_minutes)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            minutes_late=minutes_late,
            note=f"Late by {minutes_late} minute(s)",
        )

    def decide_checkout(self, *, current: AttendanceStatus, minutes_late: int) -> StatusDecision:
        return StatusDecision(status=current, minutes_late=minutes_late)
