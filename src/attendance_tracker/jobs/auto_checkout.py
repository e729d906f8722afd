from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.policy import AttendancePolicy
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceEngine
from ..common.datetime_utils import Clock, SystemClock
from ..core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)


class AutoCheckoutJob:
    def __init__(
        self,
        engine: AttendanceEngine,
        attendance: AttendanceRepository,
        *,
        clock: Optional[Clock] = None,
        policy: Optional[AttendancePolicy] = None,
    ):
        self._engine = engine
        self._attendance = attendance
        self._clock = clock or SystemClock()
        self._policy = policy or engine.policy

    def run(self, *, now: Optional[datetime] = None) -> dict:
        if not self._policy.auto_checkout:
            logger.info("Auto check-out disabled; skipping.")
            return {"checked": 0, "checked_out": 0}

        now = now or self._clock.now()
        checked = 0
        closed = 0
        for record in self._attendance.list_open():
            checked += 1
            try:
                if self._engine.auto_check_out(record.attendance_id, now=now):
                    closed += 1
            except ConcurrencyError:
                logger.warning(
                    "Record %s is busy; retrying auto check-out later",
                    record.attendance_id,
                    extra={"user_id": record.user_id, "attendance_id": record.attendance_id},
                )

        if closed:
            logger.info("Auto checked out %s record(s)", closed)
        return {"checked": checked, "checked_out": closed}
