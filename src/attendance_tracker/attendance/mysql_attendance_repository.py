from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import AttendanceStatus, BreakType
from ..core.exceptions import ConcurrentModificationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_decimal
from .model import AttendanceRecord, BreakEntry
from .repository import AttendanceRepository, BreakRepository

_RECORD_COLUMNS = """
    attendance_id, user_id, session_id, attendance_date, status, time_in, time_out,
    break_start, break_end, minutes_late, hours_worked, note, auto_checkout
"""

_BREAK_COLUMNS = """
    break_id, attendance_id, user_id, break_type, break_start, break_end,
    duration_minutes, penalty_minutes, duration_limit
"""


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        session_id=int(r["session_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        time_in=r.get("time_in"),
        time_out=r.get("time_out"),
        break_start=r.get("break_start"),
        break_end=r.get("break_end"),
        minutes_late=int(r.get("minutes_late") or 0),
        hours_worked=normalize_decimal(r.get("hours_worked")),
        note=r.get("note"),
        auto_checkout=bool(r.get("auto_checkout", False)),
    )


def _row_to_break(r: Dict[str, Any]) -> BreakEntry:
    return BreakEntry(
        break_id=int(r["break_id"]),
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        break_type=BreakType(r["break_type"]),
        break_start=r["break_start"],
        break_end=r.get("break_end"),
        duration_minutes=int(r.get("duration_minutes") or 0),
        penalty_minutes=int(r.get("penalty_minutes") or 0),
        duration_limit=int(r["duration_limit"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_session(self, *, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE user_id=%s AND session_id=%s",
                (int(user_id), int(session_id)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE session_id=%s ORDER BY user_id",
                (int(session_id),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_open(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS} FROM attendance_records
                WHERE time_in IS NOT NULL AND time_out IS NULL
                ORDER BY attendance_id
                """
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def create(self, record: AttendanceRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, session_id, attendance_date, status, time_in, time_out,
                        break_start, break_end, minutes_late, hours_worked, note, auto_checkout
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.user_id),
                        int(record.session_id),
                        record.attendance_date,
                        record.status.value,
                        record.time_in,
                        record.time_out,
                        record.break_start,
                        record.break_end,
                        int(record.minutes_late),
                        record.hours_worked,
                        record.note,
                        1 if record.auto_checkout else 0,
                    ),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError as e:
            # Unique (user_id, session_id): another writer created the row first.
            raise ConcurrentModificationError() from e

    def update(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, time_in=%s, time_out=%s, break_start=%s, break_end=%s,
                    minutes_late=%s, hours_worked=%s, note=%s, auto_checkout=%s
                WHERE attendance_id=%s
                """,
                (
                    record.status.value,
                    record.time_in,
                    record.time_out,
                    record.break_start,
                    record.break_end,
                    int(record.minutes_late),
                    record.hours_worked,
                    record.note,
                    1 if record.auto_checkout else 0,
                    int(record.attendance_id),
                ),
            )
            return cur.rowcount > 0


class MySQLBreakRepository(BreakRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_record(self, attendance_id: int) -> Sequence[BreakEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_BREAK_COLUMNS} FROM breaks WHERE attendance_id=%s ORDER BY break_start, break_id",
                (int(attendance_id),),
            )
            return [_row_to_break(r) for r in fetchall(cur)]

    def get_active_for_record(self, attendance_id: int) -> Optional[BreakEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BREAK_COLUMNS} FROM breaks
                WHERE attendance_id=%s AND break_end IS NULL
                ORDER BY break_start DESC
                LIMIT 1
                """,
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _row_to_break(r) if r else None

    def list_active(self) -> Sequence[BreakEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_BREAK_COLUMNS} FROM breaks WHERE break_end IS NULL ORDER BY break_start")
            return [_row_to_break(r) for r in fetchall(cur)]

    def create(self, entry: BreakEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO breaks(
                    attendance_id, user_id, break_type, break_start, break_end,
                    duration_minutes, penalty_minutes, duration_limit
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.attendance_id),
                    int(entry.user_id),
                    entry.break_type.value,
                    entry.break_start,
                    entry.break_end,
                    int(entry.duration_minutes),
                    int(entry.penalty_minutes),
                    int(entry.duration_limit),
                ),
            )
            return int(cur.lastrowid)

    def update(self, entry: BreakEntry) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE breaks
                SET break_start=%s, break_end=%s, duration_minutes=%s, penalty_minutes=%s
                WHERE break_id=%s
                """,
                (entry.break_start, entry.break_end, int(entry.duration_minutes), int(entry.penalty_minutes), int(entry.break_id)),
            )
            return cur.rowcount > 0
