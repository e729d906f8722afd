from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an employee or administrator.

    Note: Plain data object (no database access). ``schedule_id`` is the
    employee's default shift and decides which sessions expect them.
    """

    user_id: int
    full_name: str
    username: str
    role: Role
    schedule_id: Optional[int] = None
    is_active: bool = True
