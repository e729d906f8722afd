from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from .model import AuditEntry

logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    def append(self, entry: AuditEntry) -> int:
        raise NotImplementedError

    def list_for_entity(self, *, entity_type: str, entity_id: int, limit: int = 50) -> Sequence[AuditEntry]:
        raise NotImplementedError


class AuditTrail:
    """Thin facade the services write through.

    A failing audit sink is reported in the log but never undoes the state
    change that has already been committed.
    """

    def __init__(self, repository: AuditRepository):
        self._repository = repository

    def record(
        self,
        action: str,
        description: str,
        *,
        entity_type: str,
        entity_id: Optional[int],
        at: datetime,
        actor_id: Optional[int] = None,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
    ) -> None:
        entry = AuditEntry(
            action=action,
            description=description,
            entity_type=entity_type,
            entity_id=entity_id,
            created_at=at,
            actor_id=actor_id,
            old_values=old_values,
            new_values=new_values,
        )
        try:
            self._repository.append(entry)
        except Exception:
            logger.exception("Failed to append audit entry %s for %s #%s", action, entity_type, entity_id)
