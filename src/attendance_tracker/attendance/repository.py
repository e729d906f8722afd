from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, BreakEntry


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_session(self, *, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open(self) -> Sequence[AttendanceRecord]:
        """Records that have timed in but not yet timed out."""

        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> int:
        """Insert a record (attendance_id is ignored).

        Raises ConcurrentModificationError if (user_id, session_id) already exists.
        Returns attendance_id.
        """

        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError


class BreakRepository(Protocol):
    def list_for_record(self, attendance_id: int) -> Sequence[BreakEntry]:
        raise NotImplementedError

    def get_active_for_record(self, attendance_id: int) -> Optional[BreakEntry]:
        raise NotImplementedError

    def list_active(self) -> Sequence[BreakEntry]:
        raise NotImplementedError

    def create(self, entry: BreakEntry) -> int:
        raise NotImplementedError

    def update(self, entry: BreakEntry) -> bool:
        raise NotImplementedError
