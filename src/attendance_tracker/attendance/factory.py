from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.enums import AttendanceStatus
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy

_CAN_LEAVE_EARLY = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, shift_start: datetime, grace_minutes: int) -> AttendanceStrategy:
        if now <= shift_start + timedelta(minutes=grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(
        self,
        *,
        now: datetime,
        shift_end: datetime,
        early_leave_margin_minutes: int,
        current_status: AttendanceStatus,
    ) -> AttendanceStrategy:
        leave_early_before = shift_end - timedelta(minutes=early_leave_margin_minutes)
        if now < leave_early_before and current_status in _CAN_LEAVE_EARLY:
            return EarlyLeaveStrategy()
        return NormalStrategy()
