from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(action, description, entity_type, entity_id, actor_id, old_values, new_values, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.action,
                    entry.description,
                    entry.entity_type,
                    entry.entity_id,
                    entry.actor_id,
                    to_json(entry.old_values),
                    to_json(entry.new_values),
                    entry.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity_type: str, entity_id: int, limit: int = 50) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, action, description, entity_type, entity_id, actor_id, old_values, new_values, created_at
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (entity_type, int(entity_id), int(limit)),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    action=r["action"],
                    description=r["description"],
                    entity_type=r["entity_type"],
                    entity_id=r.get("entity_id"),
                    actor_id=r.get("actor_id"),
                    old_values=from_json(r.get("old_values")),
                    new_values=from_json(r.get("new_values")),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
