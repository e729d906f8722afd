from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Schedule, ScheduleConfig


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    def create(self, config: ScheduleConfig) -> int:
        """Persist a new active schedule.

        Returns schedule_id.
        """

        raise NotImplementedError

    def set_active(self, schedule_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_active(self) -> Sequence[Schedule]:
        raise NotImplementedError
