from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditEntry:
    """Append-only record of a state change."""

    action: str
    description: str
    entity_type: str
    entity_id: Optional[int]
    created_at: datetime
    actor_id: Optional[int] = None
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    audit_id: Optional[int] = field(default=None, compare=False)
