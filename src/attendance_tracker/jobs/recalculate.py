from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceEngine
from ..common.datetime_utils import Clock, SystemClock
from ..core.exceptions import ConcurrencyError
from ..sessions.service import SessionService

logger = logging.getLogger(__name__)


class RecalculateStatusJob:
    """Re-derives present/late for checked-in records after schedule edits."""

    def __init__(
        self,
        engine: AttendanceEngine,
        sessions: SessionService,
        attendance: AttendanceRepository,
        *,
        clock: Optional[Clock] = None,
    ):
        self._engine = engine
        self._sessions = sessions
        self._attendance = attendance
        self._clock = clock or SystemClock()

    def run(self, session_id: Optional[int] = None, *, now: Optional[datetime] = None) -> dict:
        now = now or self._clock.now()
        if session_id is not None:
            candidates = [self._sessions.get(session_id)]
        else:
            candidates = list(self._sessions.list_active())

        checked = 0
        updated = 0
        for session in candidates:
            if session.is_locked:
                continue
            for record in self._attendance.list_for_session(session.session_id):
                if not record.has_checked_in:
                    continue
                checked += 1
                try:
                    if self._engine.recalculate_status(record.attendance_id, now=now):
                        updated += 1
                except ConcurrencyError:
                    logger.warning(
                        "Record %s is busy; recalculating later",
                        record.attendance_id,
                        extra={"user_id": record.user_id, "attendance_id": record.attendance_id},
                    )

        if updated:
            logger.info("Recalculated status of %s record(s)", updated)
        return {"checked": checked, "updated": updated}
