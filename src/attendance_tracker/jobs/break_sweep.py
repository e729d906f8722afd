from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.policy import AttendancePolicy
from ..attendance.repository import BreakRepository
from ..attendance.service import AttendanceEngine
from ..common.datetime_utils import Clock, SystemClock
from ..core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)


class BreakSweepJob:
    """Force-ends breaks that ran past their limit plus tolerance."""

    def __init__(
        self,
        engine: AttendanceEngine,
        breaks: BreakRepository,
        *,
        clock: Optional[Clock] = None,
        policy: Optional[AttendancePolicy] = None,
    ):
        self._engine = engine
        self._breaks = breaks
        self._clock = clock or SystemClock()
        self._policy = policy or engine.policy

    def run(self, *, now: Optional[datetime] = None) -> dict:
        if not self._policy.auto_end_breaks:
            logger.info("Auto-end breaks disabled; skipping break sweep.")
            return {"checked": 0, "force_ended": 0}

        now = now or self._clock.now()
        checked = 0
        ended = 0
        for entry in self._breaks.list_active():
            checked += 1
            try:
                if self._engine.force_end_break(entry.attendance_id, now=now):
                    ended += 1
            except ConcurrencyError:
                logger.warning(
                    "Break %s is busy; retrying on the next sweep",
                    entry.break_id,
                    extra={"user_id": entry.user_id, "attendance_id": entry.attendance_id},
                )

        if ended:
            logger.info("Break sweep force-ended %s break(s)", ended)
        return {"checked": checked, "force_ended": ended}
