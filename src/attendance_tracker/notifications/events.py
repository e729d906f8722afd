"""Typed events emitted by the attendance core.

Domain events describe a committed state change and go to the event bus.
Notification events are the subset delivered to people (admins, employees)
through a ``NotificationDispatcher``; each carries its own payload.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, ClassVar, Optional, Union

from ..attendance.model import AttendanceRecord
from ..core.enums import BreakType
from ..sessions.model import AttendanceSession


@dataclass(frozen=True)
class AttendanceUpdated:
    kind: ClassVar[str] = "attendance_updated"

    record: AttendanceRecord
    action: str


@dataclass(frozen=True)
class BreakUpdated:
    kind: ClassVar[str] = "break_updated"

    record: AttendanceRecord
    action: str
    break_type: BreakType


@dataclass(frozen=True)
class SessionUpdated:
    kind: ClassVar[str] = "session_updated"

    session: AttendanceSession
    action: str


@dataclass(frozen=True)
class LateArrivalNotification:
    kind: ClassVar[str] = "late_arrival"

    user_id: int
    attendance_id: int
    session_id: int
    minutes_late: int
    time_in: datetime


@dataclass(frozen=True)
class AbsentNotification:
    kind: ClassVar[str] = "absent"

    user_id: int
    attendance_id: int
    session_id: int
    attendance_date: date


@dataclass(frozen=True)
class BreakExceededNotification:
    kind: ClassVar[str] = "break_exceeded"

    user_id: int
    attendance_id: int
    break_id: Optional[int]
    break_type: BreakType
    limit_minutes: int
    excess_minutes: int
    forced: bool = False


DomainEvent = Union[AttendanceUpdated, BreakUpdated, SessionUpdated]
NotificationEvent = Union[LateArrivalNotification, AbsentNotification, BreakExceededNotification]


def event_payload(event: Union[DomainEvent, NotificationEvent]) -> dict[str, Any]:
    """Serializable form used by log-based and external subscribers."""
    return {"type": event.kind, "data": asdict(event)}
