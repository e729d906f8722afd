from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization checks."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PENDING = "pending"
    PRESENT = "present"
    LATE = "late"
    LEFT_EARLY = "left_early"
    ABSENT = "absent"
    EXCUSED = "excused"


class SessionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    LOCKED = "locked"


class BreakType(str, Enum):
    REGULAR = "regular"
    COFFEE = "coffee"
    MEAL = "meal"


# Statuses that may carry a non-zero minutes_late.
LATE_STATUSES = frozenset({AttendanceStatus.LATE, AttendanceStatus.LEFT_EARLY})
