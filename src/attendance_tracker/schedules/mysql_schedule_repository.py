from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import BreakWindow, Schedule, ScheduleConfig
from .repository import ScheduleRepository

_COLUMNS = """
    schedule_id, name, time_in, time_out, break_start, break_end, break_max_minutes,
    grace_period_minutes, late_threshold_minutes, early_leave_threshold_minutes, is_active
"""


def _row_to_schedule(r: Dict[str, Any]) -> Schedule:
    early = r.get("early_leave_threshold_minutes")
    return Schedule(
        schedule_id=int(r["schedule_id"]),
        name=r["name"],
        time_in=normalize_mysql_time(r["time_in"]),
        time_out=normalize_mysql_time(r["time_out"]),
        break_window=BreakWindow(
            start=normalize_mysql_time(r["break_start"]),
            end=normalize_mysql_time(r["break_end"]),
            max_minutes=int(r["break_max_minutes"]),
        ),
        grace_period_minutes=int(r.get("grace_period_minutes") or 0),
        late_threshold_minutes=int(r.get("late_threshold_minutes") or 0),
        early_leave_threshold_minutes=int(early) if early is not None else None,
        is_active=bool(r.get("is_active", True)),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def create(self, config: ScheduleConfig) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO schedules(
                    name, time_in, time_out, break_start, break_end, break_max_minutes,
                    grace_period_minutes, late_threshold_minutes, early_leave_threshold_minutes, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    config.name,
                    config.time_in,
                    config.time_out,
                    config.break_start,
                    config.break_end,
                    int(config.break_max_minutes),
                    int(config.grace_period_minutes),
                    int(config.late_threshold_minutes),
                    config.early_leave_threshold_minutes,
                ),
            )
            return int(cur.lastrowid)

    def set_active(self, schedule_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE schedules SET is_active=%s WHERE schedule_id=%s",
                (1 if is_active else 0, int(schedule_id)),
            )
            return cur.rowcount > 0

    def list_active(self) -> Sequence[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE is_active=1 ORDER BY time_in, schedule_id")
            return [_row_to_schedule(r) for r in fetchall(cur)]
