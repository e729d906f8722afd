from __future__ import annotations

import logging
from datetime import time
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import parse_clock_time
from ..common.validators import require_non_empty, require_non_negative, require_positive_id
from ..core.constants import DEFAULT_BREAK_MAX_MINUTES, DEFAULT_GRACE_MINUTES, DEFAULT_LATE_THRESHOLD_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Schedule, ScheduleConfig
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


def _clock(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_clock_time(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be formatted as HH:MM") from None


class ScheduleService:
    def __init__(self, schedules: ScheduleRepository):
        self._schedules = schedules

    def parse_config(self, config: Mapping[str, Any]) -> ScheduleConfig:
        """Turn raw input (form/JSON) into a validated ScheduleConfig."""
        name = require_non_empty(str(config.get("name") or ""), "Schedule name")
        time_in = _clock(config.get("time_in"), "time_in")
        time_out = _clock(config.get("time_out"), "time_out")
        if time_in == time_out:
            raise ValidationError("time_in and time_out must differ")

        break_max = require_non_negative(config.get("break_max_minutes", DEFAULT_BREAK_MAX_MINUTES), "break_max_minutes")
        if break_max <= 0:
            raise ValidationError("break_max_minutes must be greater than zero")

        early_leave = config.get("early_leave_threshold_minutes")
        return ScheduleConfig(
            name=name,
            time_in=time_in,
            time_out=time_out,
            break_start=_clock(config.get("break_start"), "break_start"),
            break_end=_clock(config.get("break_end"), "break_end"),
            break_max_minutes=break_max,
            grace_period_minutes=require_non_negative(
                config.get("grace_period_minutes", DEFAULT_GRACE_MINUTES), "grace_period_minutes"
            ),
            late_threshold_minutes=require_non_negative(
                config.get("late_threshold_minutes", DEFAULT_LATE_THRESHOLD_MINUTES), "late_threshold_minutes"
            ),
            early_leave_threshold_minutes=(
                None if early_leave is None else require_non_negative(early_leave, "early_leave_threshold_minutes")
            ),
        )

    def create_schedule(self, *, current_role: Role, config: Mapping[str, Any] | ScheduleConfig) -> Schedule:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can create schedules")

        if not isinstance(config, ScheduleConfig):
            config = self.parse_config(config)

        schedule_id = self._schedules.create(config)
        logger.info("Created schedule %s (%s)", schedule_id, config.name)
        return self.get(schedule_id)

    def set_active(self, *, current_role: Role, schedule_id: int, is_active: bool) -> Schedule:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change schedules")

        schedule_id = require_positive_id(schedule_id, "Schedule")
        if not self._schedules.set_active(schedule_id, is_active=bool(is_active)):
            raise NotFoundError("Schedule not found")
        return self.get(schedule_id)

    def get(self, schedule_id: int) -> Schedule:
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def find(self, schedule_id: int) -> Optional[Schedule]:
        return self._schedules.get_by_id(int(schedule_id))

    def list_active(self) -> Sequence[Schedule]:
        return self._schedules.list_active()
