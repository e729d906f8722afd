from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional, Sequence

from ..audit.repository import AuditTrail
from ..common.datetime_utils import Clock, SystemClock, minutes_between, parse_iso_datetime
from ..common.validators import require_min_length
from ..core.constants import MIN_CORRECTION_REASON_LENGTH
from ..core.enums import LATE_STATUSES, AttendanceStatus, BreakType, Role
from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AuthorizationError,
    NoActiveBreakError,
    NotCheckedInError,
    NotFoundError,
    SessionNotActiveError,
    ValidationError,
)
from ..notifications.dispatcher import EventBus, LoggingNotificationDispatcher, NotificationDispatcher, deliver
from ..notifications.events import (
    AbsentNotification,
    AttendanceUpdated,
    BreakExceededNotification,
    BreakUpdated,
    LateArrivalNotification,
)
from ..schedules.model import Schedule
from ..sessions.model import AttendanceSession
from ..sessions.service import SessionService
from ..users.repository import UserRepository
from .break_policy import BreakStatus, BreakWindowPolicy, ClosedBreak
from .factory import AttendanceStrategyFactory
from .locks import InProcessLockManager, RecordLockManager, record_lock_key
from .metrics import compute_hours_worked, total_break_minutes
from .model import AttendanceRecord, BreakEntry
from .policy import AttendancePolicy
from .repository import AttendanceRepository, BreakRepository
from .strategies.base import StatusDecision

logger = logging.getLogger(__name__)

AUTO_CHECKOUT_NOTE = "Auto checked out by system"

_CORRECTABLE_FIELDS = frozenset({"status", "time_in", "time_out", "break_start", "break_end", "note"})


@dataclass(frozen=True)
class CheckInEligibility:
    allowed: bool
    reason: str
    message: str
    expected_status: Optional[AttendanceStatus] = None
    minutes_late: int = 0


def _append_note(existing: Optional[str], extra: Optional[str]) -> Optional[str]:
    if not extra:
        return existing
    if not existing:
        return extra
    if extra in existing:
        return existing
    return f"{existing}; {extra}"


def _as_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date-time") from None


def validate_record(record: AttendanceRecord) -> None:
    """Invariants every persisted record satisfies."""
    if record.time_out is not None:
        if record.time_in is None:
            raise ValidationError("Time out requires a time in")
        if record.time_out <= record.time_in:
            raise ValidationError("Time out must be after time in")
    if record.break_end is not None:
        if record.break_start is None:
            raise ValidationError("Break end requires a break start")
        if record.break_end <= record.break_start:
            raise ValidationError("Break end must be after break start")
    if record.minutes_late < 0:
        raise ValidationError("Minutes late cannot be negative")
    if record.minutes_late and record.status not in LATE_STATUSES:
        raise ValidationError("Only late records carry minutes late")
    if record.hours_worked < 0:
        raise ValidationError("Hours worked cannot be negative")


class AttendanceEngine:
    """The only code path that writes attendance fields.

    Every mutation runs under the (user, session) record lock, re-reads the
    record inside the lock, computes the new state on an immutable copy,
    validates it and only then persists. Events, notifications and audit
    entries follow the commit and never undo it.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        breaks: BreakRepository,
        sessions: SessionService,
        users: Optional[UserRepository] = None,
        *,
        clock: Optional[Clock] = None,
        locks: Optional[RecordLockManager] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        events: Optional[EventBus] = None,
        audit: Optional[AuditTrail] = None,
        policy: Optional[AttendancePolicy] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        break_policy: Optional[BreakWindowPolicy] = None,
    ):
        self._attendance = attendance
        self._breaks = breaks
        self._sessions = sessions
        self._users = users
        self._clock = clock or SystemClock()
        self._policy = policy or AttendancePolicy()
        self._locks = locks or InProcessLockManager(timeout_seconds=self._policy.lock_timeout_seconds)
        self._dispatcher = dispatcher or LoggingNotificationDispatcher()
        self._events = events or EventBus()
        self._audit = audit
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._break_policy = break_policy or BreakWindowPolicy(
            max_breaks_per_day=self._policy.max_breaks_per_day,
            sweep_tolerance_minutes=self._policy.break_sweep_tolerance_minutes,
        )

    @property
    def policy(self) -> AttendancePolicy:
        return self._policy

    # ---- reads -------------------------------------------------------------

    def get_record(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(record_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def records_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        session = self._sessions.get(session_id)
        return self._attendance.list_for_session(session.session_id)

    def breaks_for_record(self, record_id: int) -> Sequence[BreakEntry]:
        record = self.get_record(record_id)
        return self._breaks.list_for_record(record.attendance_id)

    def can_check_in(self, user_id: int, session_id: int, now: Optional[datetime] = None) -> CheckInEligibility:
        """Answer whether check_in would succeed now, without changing anything."""
        now = now or self._clock.now()
        session = self._sessions.get(session_id)
        schedule = self._sessions.schedule_for(session)

        if session.is_locked:
            return CheckInEligibility(False, "session_locked", "This session is locked")
        if session.is_pending and now < schedule.opens_at(session.session_date):
            opens_at = schedule.opens_at(session.session_date)
            return CheckInEligibility(False, "session_pending", f"Check-in opens at {opens_at:%Y-%m-%d %H:%M}")

        existing = self._attendance.get_for_user_and_session(user_id=int(user_id), session_id=session.session_id)
        if existing and existing.has_checked_in:
            return CheckInEligibility(False, "already_checked_in", AlreadyCheckedInError.default_message)

        decision = self._checkin_decision(session, schedule, now)
        return CheckInEligibility(
            True,
            "available",
            "You may time in",
            expected_status=decision.status,
            minutes_late=decision.minutes_late,
        )

    def break_status(self, record_id: int, now: Optional[datetime] = None) -> BreakStatus:
        now = now or self._clock.now()
        record = self.get_record(record_id)
        session, schedule = self._context(record)
        status = self._break_policy.status(
            schedule=schedule,
            record=record,
            breaks=self._breaks.list_for_record(record.attendance_id),
            now=now,
        )
        if session.is_locked and status.can_start:
            return replace(status, can_start=False, reason="session_locked", message="This session is locked")
        return status

    # ---- check-in ------------------------------------------------------------

    def check_in(self, user_id: int, session_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or self._clock.now()
        user_id = int(user_id)
        if self._users is not None:
            user = self._users.get_by_id(user_id)
            if not user or not user.is_active:
                raise NotFoundError("Employee not found")

        with self._locks.hold(record_lock_key(user_id, int(session_id))):
            session = self._sessions.refresh(self._sessions.get(session_id), now)
            if not session.is_active:
                if session.is_locked:
                    raise SessionNotActiveError("This session is locked")
                raise SessionNotActiveError("This session has not started yet")
            schedule = self._sessions.schedule_for(session)

            existing = self._attendance.get_for_user_and_session(user_id=user_id, session_id=session.session_id)
            if existing and existing.has_checked_in:
                raise AlreadyCheckedInError()

            decision = self._checkin_decision(session, schedule, now)

            base = existing or AttendanceRecord(
                attendance_id=0,
                user_id=user_id,
                session_id=session.session_id,
                attendance_date=session.session_date,
                status=AttendanceStatus.PENDING,
            )
            record = replace(
                base,
                time_in=now,
                status=decision.status,
                minutes_late=decision.minutes_late,
                note=_append_note(base.note, decision.note),
            )
            validate_record(record)

            if existing:
                self._attendance.update(record)
            else:
                record = replace(record, attendance_id=self._attendance.create(record))

        logger.info(
            "User %s checked in (%s)",
            user_id,
            record.status.value,
            extra={"user_id": user_id, "session_id": record.session_id, "attendance_id": record.attendance_id},
        )
        self._record_audit("check_in", f"Checked in as {record.status.value}", record, at=now, actor_id=user_id)
        self._events.publish(AttendanceUpdated(record=record, action="checked_in"))
        if record.status == AttendanceStatus.LATE and self._policy.late_alerts:
            deliver(
                self._dispatcher,
                LateArrivalNotification(
                    user_id=user_id,
                    attendance_id=record.attendance_id,
                    session_id=record.session_id,
                    minutes_late=record.minutes_late,
                    time_in=now,
                ),
            )
        return record

    # ---- breaks ----------------------------------------------------------------

    def start_break(
        self,
        record_id: int,
        *,
        now: Optional[datetime] = None,
        break_type: BreakType = BreakType.REGULAR,
    ) -> AttendanceRecord:
        now = now or self._clock.now()
        break_type = BreakType(break_type)
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            session, schedule = self._context(record)
            self._ensure_editable(session)

            history = self._breaks.list_for_record(record.attendance_id)
            limit = self._break_policy.check_start(
                schedule=schedule,
                record=record,
                breaks=history,
                now=now,
                break_type=break_type,
            )
            entry = BreakEntry(
                break_id=0,
                attendance_id=record.attendance_id,
                user_id=record.user_id,
                break_type=break_type,
                break_start=now,
                duration_limit=limit,
            )
            updated = replace(record, break_start=now, break_end=None)
            validate_record(updated)

            entry = replace(entry, break_id=self._breaks.create(entry))
            self._attendance.update(updated)

        logger.info(
            "Break %s started (%s, limit %s min)",
            entry.break_id,
            break_type.value,
            limit,
            extra={"user_id": updated.user_id, "attendance_id": updated.attendance_id},
        )
        self._record_audit("break_start", f"Started {break_type.value} break", updated, at=now, actor_id=updated.user_id)
        self._events.publish(BreakUpdated(record=updated, action="break_started", break_type=break_type))
        return updated

    def end_break(self, record_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or self._clock.now()
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            session, _ = self._context(record)
            self._ensure_editable(session)

            active = self._breaks.get_active_for_record(record.attendance_id)
            if active is None:
                raise NoActiveBreakError()

            closed = self._break_policy.close(active, now)
            updated = replace(record, break_start=closed.entry.break_start, break_end=closed.entry.break_end)
            validate_record(updated)

            self._breaks.update(closed.entry)
            self._attendance.update(updated)

        self._after_break_closed(updated, closed, at=now, action="break_ended")
        return updated

    def force_end_break(self, record_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        """End an open break that ran past its limit plus the sweep tolerance.

        Returns None when there is nothing to do (no open break, not overdue
        yet, or the session is locked).
        """
        now = now or self._clock.now()
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            session, _ = self._context(record)
            if session.is_locked:
                return None

            active = self._breaks.get_active_for_record(record.attendance_id)
            if active is None or not self._break_policy.is_overdue(active, now):
                return None

            closed = self._break_policy.force_close(active, now)
            updated = replace(record, break_start=closed.entry.break_start, break_end=closed.entry.break_end)
            validate_record(updated)

            self._breaks.update(closed.entry)
            self._attendance.update(updated)

        logger.info(
            "Break %s force-ended after %s minute(s) over the limit",
            closed.entry.break_id,
            closed.excess_minutes,
            extra={"user_id": updated.user_id, "attendance_id": updated.attendance_id},
        )
        self._after_break_closed(updated, closed, at=now, action="break_force_ended", forced=True)
        return updated

    # ---- check-out ---------------------------------------------------------------

    def check_out(self, record_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or self._clock.now()
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            session, schedule = self._context(record)
            self._ensure_editable(session)

            if not record.has_checked_in:
                raise NotCheckedInError()
            if record.has_checked_out:
                raise AlreadyCheckedOutError()
            if now <= record.time_in:
                raise ValidationError("Time out must be after time in")

            updated, closed = self._checked_out(record, schedule, session, time_out=now)
            if closed is not None:
                self._breaks.update(closed.entry)
            self._attendance.update(updated)

        logger.info(
            "User %s checked out (%s, %s h)",
            updated.user_id,
            updated.status.value,
            updated.hours_worked,
            extra={"user_id": updated.user_id, "attendance_id": updated.attendance_id},
        )
        if closed is not None:
            self._after_break_closed(updated, closed, at=now, action="break_ended")
        self._record_audit("check_out", f"Checked out as {updated.status.value}", updated, at=now, actor_id=updated.user_id)
        self._events.publish(AttendanceUpdated(record=updated, action="checked_out"))
        return updated

    def auto_check_out(self, record_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        """Close a record left open well past the end of its shift.

        The time out is the scheduled shift end, unless the employee was still
        recorded as working (or on break) at that point, in which case it is now.
        """
        now = now or self._clock.now()
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            if not record.has_checked_in or record.has_checked_out:
                return None
            session, schedule = self._context(record)
            if session.is_locked:
                return None

            _, shift_end = schedule.bounds_for(session.session_date)
            if now < shift_end + timedelta(minutes=self._policy.auto_checkout_after_minutes):
                return None

            active = self._breaks.get_active_for_record(record.attendance_id)
            latest_activity = max(record.time_in, active.break_start) if active else record.time_in
            time_out = shift_end if shift_end > latest_activity else now

            updated, closed = self._checked_out(record, schedule, session, time_out=time_out)
            updated = replace(updated, auto_checkout=True, note=_append_note(updated.note, AUTO_CHECKOUT_NOTE))
            validate_record(updated)

            if closed is not None:
                self._breaks.update(closed.entry)
            self._attendance.update(updated)

        logger.info(
            "User %s auto checked out at %s",
            updated.user_id,
            time_out.isoformat(),
            extra={"user_id": updated.user_id, "attendance_id": updated.attendance_id},
        )
        if closed is not None:
            self._after_break_closed(updated, closed, at=now, action="break_ended")
        self._record_audit("auto_checkout", AUTO_CHECKOUT_NOTE, updated, at=now)
        self._events.publish(AttendanceUpdated(record=updated, action="auto_checked_out"))
        return updated

    def _checked_out(
        self,
        record: AttendanceRecord,
        schedule: Schedule,
        session: AttendanceSession,
        *,
        time_out: datetime,
    ) -> tuple[AttendanceRecord, Optional[ClosedBreak]]:
        closed = None
        history: List[BreakEntry] = list(self._breaks.list_for_record(record.attendance_id))
        active = next((b for b in history if b.is_active), None)
        if active is not None:
            closed = self._break_policy.close(active, time_out)
            history = [closed.entry if b.break_id == active.break_id else b for b in history]
            record = replace(record, break_start=closed.entry.break_start, break_end=closed.entry.break_end)

        _, shift_end = schedule.bounds_for(session.session_date)
        strategy = self._factory.for_checkout(
            now=time_out,
            shift_end=shift_end,
            early_leave_margin_minutes=schedule.early_leave_margin_minutes,
            current_status=record.status,
        )
        decision = strategy.decide_checkout(current=record.status, minutes_late=record.minutes_late)

        updated = replace(
            record,
            time_out=time_out,
            status=decision.status,
            minutes_late=decision.minutes_late if decision.status in LATE_STATUSES else 0,
            hours_worked=compute_hours_worked(record.time_in, time_out, total_break_minutes(record, history)),
            note=_append_note(record.note, decision.note),
        )
        validate_record(updated)
        return updated, closed

    # ---- absence -------------------------------------------------------------------

    def mark_absent(self, user_id: int, session_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        """Mark a user absent for a session.

        Returns None when the user already has a processed record (checked
        in, or a status other than pending), so repeated runs change nothing.
        """
        now = now or self._clock.now()
        user_id = int(user_id)

        with self._locks.hold(record_lock_key(user_id, int(session_id))):
            session = self._sessions.get(session_id)
            self._ensure_editable(session)

            existing = self._attendance.get_for_user_and_session(user_id=user_id, session_id=session.session_id)
            if existing and (existing.has_checked_in or existing.status != AttendanceStatus.PENDING):
                return None

            base = existing or AttendanceRecord(
                attendance_id=0,
                user_id=user_id,
                session_id=session.session_id,
                attendance_date=session.session_date,
                status=AttendanceStatus.PENDING,
            )
            record = replace(base, status=AttendanceStatus.ABSENT, minutes_late=0)
            validate_record(record)

            if existing:
                self._attendance.update(record)
            else:
                record = replace(record, attendance_id=self._attendance.create(record))

        logger.info(
            "User %s marked absent",
            user_id,
            extra={"user_id": user_id, "session_id": record.session_id, "attendance_id": record.attendance_id},
        )
        self._record_audit("auto_mark_absent", "Marked absent by system", record, at=now)
        self._events.publish(AttendanceUpdated(record=record, action="marked_absent"))
        if self._policy.absent_alerts:
            deliver(
                self._dispatcher,
                AbsentNotification(
                    user_id=user_id,
                    attendance_id=record.attendance_id,
                    session_id=record.session_id,
                    attendance_date=record.attendance_date,
                ),
            )
        return record

    # ---- status recalculation ------------------------------------------------------------

    def recalculate_status(self, record_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        """Re-derive status and minutes_late of a checked-in record from its schedule.

        Used after a schedule's times or grace period were edited. Returns the
        updated record, or None when nothing changed, the record has no time
        in, was excused, or its session is locked. A left-early record keeps
        its status and only has its lateness recomputed.
        """
        now = now or self._clock.now()
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            session, schedule = self._context(record)
            if session.is_locked or not record.has_checked_in or record.status == AttendanceStatus.EXCUSED:
                return None

            decision = self._checkin_decision(session, schedule, record.time_in)
            status = decision.status
            if record.status == AttendanceStatus.LEFT_EARLY:
                status = AttendanceStatus.LEFT_EARLY
            if status == record.status and decision.minutes_late == record.minutes_late:
                return None

            updated = replace(record, status=status, minutes_late=decision.minutes_late)
            validate_record(updated)
            self._attendance.update(updated)

        logger.info(
            "Record %s recalculated: %s -> %s",
            updated.attendance_id,
            record.status.value,
            updated.status.value,
            extra={"user_id": updated.user_id, "attendance_id": updated.attendance_id},
        )
        self._record_audit(
            "status_recalculated",
            f"Status recalculated as {updated.status.value}",
            updated,
            at=now,
            old_values={"status": record.status.value, "minutes_late": record.minutes_late},
            new_values={"status": updated.status.value, "minutes_late": updated.minutes_late},
        )
        self._events.publish(AttendanceUpdated(record=updated, action="recalculated"))
        return updated

    # ---- administrative correction -----------------------------------------------------

    def correct_record(
        self,
        record_id: int,
        *,
        current_role: Role,
        changes: Mapping[str, Any],
        reason: str,
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Administrative edit of a record; derived fields are recomputed."""
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can correct attendance")
        reason = require_min_length(reason or "", "Reason", MIN_CORRECTION_REASON_LENGTH)

        unknown = set(changes) - _CORRECTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot correct field(s): {', '.join(sorted(unknown))}")

        now = now or self._clock.now()
        target = self.get_record(record_id)

        with self._locks.hold(record_lock_key(target.user_id, target.session_id)):
            record = self.get_record(record_id)
            session, schedule = self._context(record)
            self._ensure_editable(session)

            status = record.status
            if "status" in changes:
                try:
                    status = AttendanceStatus(changes["status"])
                except ValueError:
                    raise ValidationError("Unknown attendance status") from None

            time_in = _as_datetime(changes["time_in"], "time_in") if "time_in" in changes else record.time_in
            time_out = _as_datetime(changes["time_out"], "time_out") if "time_out" in changes else record.time_out
            break_start = (
                _as_datetime(changes["break_start"], "break_start") if "break_start" in changes else record.break_start
            )
            break_end = _as_datetime(changes["break_end"], "break_end") if "break_end" in changes else record.break_end

            history: List[BreakEntry] = list(self._breaks.list_for_record(record.attendance_id))
            corrected_break = None
            if "break_start" in changes or "break_end" in changes:
                corrected_break = self._corrected_break(history, break_start, break_end)
                if corrected_break is not None:
                    history = [corrected_break if b.break_id == corrected_break.break_id else b for b in history]
            if time_out is not None and break_start is not None and break_end is None:
                raise ValidationError("Close the open break before setting a time out")

            minutes_late = 0
            if status in LATE_STATUSES and time_in is not None:
                minutes_late = self._checkin_decision(session, schedule, time_in).minutes_late

            updated = replace(
                record,
                status=status,
                time_in=time_in,
                time_out=time_out,
                break_start=break_start,
                break_end=break_end,
                minutes_late=minutes_late,
                note=changes.get("note", record.note),
            )
            validate_record(updated)
            updated = replace(
                updated,
                hours_worked=compute_hours_worked(time_in, time_out, total_break_minutes(updated, history)),
            )

            if corrected_break is not None:
                self._breaks.update(corrected_break)
            self._attendance.update(updated)

        logger.info(
            "Record %s corrected by %s",
            updated.attendance_id,
            actor_id,
            extra={"user_id": updated.user_id, "attendance_id": updated.attendance_id},
        )
        self._record_audit(
            "attendance_corrected",
            f"Attendance corrected: {reason}",
            updated,
            at=now,
            actor_id=actor_id,
            old_values=record.snapshot(),
            new_values=updated.snapshot(),
        )
        self._events.publish(AttendanceUpdated(record=updated, action="corrected"))
        return updated

    @staticmethod
    def _corrected_break(
        history: Sequence[BreakEntry],
        break_start: Optional[datetime],
        break_end: Optional[datetime],
    ) -> Optional[BreakEntry]:
        # Corrections apply to the most recent break entry.
        if not history:
            return None
        latest = history[-1]
        if break_start is None:
            raise ValidationError("A recorded break cannot be removed, only adjusted")
        if break_end is None:
            return replace(latest, break_start=break_start, break_end=None, duration_minutes=0, penalty_minutes=0)
        if break_end <= break_start:
            raise ValidationError("Break end must be after break start")
        elapsed = minutes_between(break_start, break_end)
        return replace(
            latest,
            break_start=break_start,
            break_end=break_end,
            duration_minutes=min(elapsed, latest.duration_limit),
            penalty_minutes=max(0, elapsed - latest.duration_limit),
        )

    # ---- helpers -----------------------------------------------------------------------

    def _context(self, record: AttendanceRecord) -> tuple[AttendanceSession, Schedule]:
        session = self._sessions.get(record.session_id)
        return session, self._sessions.schedule_for(session)

    def _checkin_decision(self, session: AttendanceSession, schedule: Schedule, moment: datetime) -> StatusDecision:
        shift_start, _ = schedule.bounds_for(session.session_date)
        strategy = self._factory.for_checkin(now=moment, shift_start=shift_start, grace_minutes=schedule.grace_period_minutes)
        return strategy.decide_checkin(now=moment, shift_start=shift_start, grace_minutes=schedule.grace_period_minutes)

    @staticmethod
    def _ensure_editable(session: AttendanceSession) -> None:
        if session.is_locked:
            raise SessionNotActiveError("This session is locked; attendance can no longer change")

    def _after_break_closed(
        self,
        record: AttendanceRecord,
        closed: ClosedBreak,
        *,
        at: datetime,
        action: str,
        forced: bool = False,
    ) -> None:
        entry = closed.entry
        self._record_audit(
            action,
            f"{entry.break_type.value.capitalize()} break ended after {entry.total_minutes} minute(s)",
            record,
            at=at,
            actor_id=None if forced else record.user_id,
        )
        self._events.publish(BreakUpdated(record=record, action=action, break_type=entry.break_type))
        if closed.excess_minutes > 0 and self._policy.break_alerts:
            deliver(
                self._dispatcher,
                BreakExceededNotification(
                    user_id=record.user_id,
                    attendance_id=record.attendance_id,
                    break_id=entry.break_id,
                    break_type=entry.break_type,
                    limit_minutes=entry.duration_limit,
                    excess_minutes=closed.excess_minutes,
                    forced=forced,
                ),
            )

    def _record_audit(self, action: str, description: str, record: AttendanceRecord, *, at: datetime, **kwargs) -> None:
        if self._audit is None:
            return
        self._audit.record(
            action,
            description,
            entity_type="attendance_record",
            entity_id=record.attendance_id,
            at=at,
            **kwargs,
        )
