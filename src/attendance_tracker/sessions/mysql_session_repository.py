from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import SessionStatus
from ..core.exceptions import DuplicateSessionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceSession
from .repository import SessionRepository

_COLUMNS = "session_id, schedule_id, session_date, status, opened_at, locked_at, locked_by, created_by"


def _row_to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        schedule_id=int(r["schedule_id"]),
        session_date=r["session_date"],
        status=SessionStatus(r["status"]),
        opened_at=r.get("opened_at"),
        locked_at=r.get("locked_at"),
        locked_by=r.get("locked_by"),
        created_by=r.get("created_by"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def get_for_schedule_and_date(self, *, schedule_id: int, session_date: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_sessions WHERE schedule_id=%s AND session_date=%s",
                (int(schedule_id), session_date),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def find_active_for_date(self, session_date: date) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_sessions
                WHERE session_date=%s AND status=%s
                ORDER BY session_id
                """,
                (session_date, SessionStatus.ACTIVE.value),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_by_status(self, status: SessionStatus) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_sessions WHERE status=%s ORDER BY session_date, session_id",
                (status.value,),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def create(self, session: AttendanceSession) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(schedule_id, session_date, status, opened_at, created_by)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (
                        int(session.schedule_id),
                        session.session_date,
                        session.status.value,
                        session.opened_at,
                        session.created_by,
                    ),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError as e:
            raise DuplicateSessionError() from e

    def update(self, session: AttendanceSession) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s, opened_at=%s, locked_at=%s, locked_by=%s
                WHERE session_id=%s
                """,
                (
                    session.status.value,
                    session.opened_at,
                    session.locked_at,
                    session.locked_by,
                    int(session.session_id),
                ),
            )
            return cur.rowcount > 0

    def mark_active_if_pending(self, session_id: int, *, opened_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s, opened_at=%s
                WHERE session_id=%s AND status=%s
                """,
                (SessionStatus.ACTIVE.value, opened_at, int(session_id), SessionStatus.PENDING.value),
            )
            return cur.rowcount == 1
