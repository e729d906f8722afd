from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..attendance.policy import AttendancePolicy
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceEngine
from ..common.datetime_utils import Clock, SystemClock
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConcurrencyError
from ..sessions.model import AttendanceSession
from ..sessions.service import SessionService

logger = logging.getLogger(__name__)


class AbsenceJob:
    """Marks no-shows absent once a session's cutoff has passed.

    Safe to re-run: users that already have a processed record are skipped by
    ``AttendanceEngine.mark_absent``.
    """

    def __init__(
        self,
        engine: AttendanceEngine,
        sessions: SessionService,
        attendance: AttendanceRepository,
        *,
        clock: Optional[Clock] = None,
        policy: Optional[AttendancePolicy] = None,
    ):
        self._engine = engine
        self._sessions = sessions
        self._attendance = attendance
        self._clock = clock or SystemClock()
        self._policy = policy or engine.policy

    def cutoff_for(self, session: AttendanceSession) -> datetime:
        _, shift_end = self._sessions.schedule_for(session).bounds_for(session.session_date)
        return shift_end + timedelta(minutes=self._policy.absent_cutoff_minutes)

    def run(self, session_id: Optional[int] = None, *, now: Optional[datetime] = None) -> dict:
        now = now or self._clock.now()
        if session_id is not None:
            candidates = [self._sessions.get(session_id)]
        else:
            candidates = list(self._sessions.list_active()) + list(self._sessions.list_pending())

        processed = 0
        marked = 0
        for session in candidates:
            # A session nobody checked in to may still be pending.
            session = self._sessions.refresh(session, now)
            if not session.is_active:
                logger.debug("Skipping session %s (%s)", session.session_id, session.status.value)
                continue
            if now < self.cutoff_for(session):
                continue
            processed += 1
            marked += self._process(session, now)

        if marked:
            logger.info("Absence sweep marked %s user(s) absent across %s session(s)", marked, processed)
        return {"sessions_processed": processed, "marked_absent": marked}

    def _process(self, session: AttendanceSession, now: datetime) -> int:
        records = self._attendance.list_for_session(session.session_id)
        pending = [r.user_id for r in records if r.status == AttendanceStatus.PENDING and not r.has_checked_in]
        known = {r.user_id for r in records}
        unrecorded = [u for u in self._sessions.expected_user_ids(session) if u not in known]

        marked = 0
        for user_id in dict.fromkeys(pending + unrecorded):
            try:
                if self._engine.mark_absent(user_id, session.session_id, now=now):
                    marked += 1
            except ConcurrencyError:
                # Picked up again on the next run.
                logger.warning(
                    "Could not mark user %s absent, record is busy",
                    user_id,
                    extra={"user_id": user_id, "session_id": session.session_id},
                )
        return marked
