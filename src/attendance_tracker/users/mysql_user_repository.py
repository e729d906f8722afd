from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository


def _row_to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        username=row["username"],
        role=Role(row["role"]),
        schedule_id=row.get("schedule_id"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, username, role, schedule_id, is_active
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def list_active_employees(self, *, schedule_id: Optional[int] = None) -> Sequence[User]:
        clauses = ["is_active=1", "role=%s"]
        params: list[object] = [Role.EMPLOYEE.value]
        if schedule_id is not None:
            clauses.append("schedule_id=%s")
            params.append(int(schedule_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT user_id, full_name, username, role, schedule_id, is_active
                FROM users
                WHERE {where}
                ORDER BY user_id
                """,
                tuple(params),
            )
            return [_row_to_user(r) for r in fetchall(cur)]
