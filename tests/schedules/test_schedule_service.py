from __future__ import annotations

from datetime import time

import pytest

from attendance_tracker.core.enums import Role
from attendance_tracker.core.exceptions import AuthorizationError, NotFoundError, ValidationError

BASE = {
    "name": "Morning",
    "time_in": "08:00",
    "time_out": "16:00",
    "break_start": "11:30",
    "break_end": "13:30",
    "break_max_minutes": 45,
    "grace_period_minutes": 10,
    "late_threshold_minutes": 20,
}


def test_create_schedule(container):
    schedule = container.schedule_service.create_schedule(current_role=Role.ADMIN, config=BASE)

    assert schedule.name == "Morning"
    assert schedule.time_in == time(8, 0)
    assert schedule.break_window.max_minutes == 45
    assert schedule.shift_minutes == 480
    assert not schedule.is_overnight
    assert schedule.early_leave_margin_minutes == 20


def test_overnight_schedule_duration_wraps(container):
    schedule = container.schedule_service.create_schedule(
        current_role=Role.ADMIN,
        config=dict(BASE, time_in="22:00", time_out="06:00", early_leave_threshold_minutes=5),
    )

    assert schedule.is_overnight
    assert schedule.shift_minutes == 480
    assert schedule.early_leave_margin_minutes == 5


def test_create_schedule_requires_admin(container):
    with pytest.raises(AuthorizationError):
        container.schedule_service.create_schedule(current_role=Role.EMPLOYEE, config=BASE)


@pytest.mark.parametrize(
    "override",
    [
        {"name": "  "},
        {"time_in": "8am"},
        {"time_out": "08:00"},
        {"break_max_minutes": 0},
        {"grace_period_minutes": -1},
        {"late_threshold_minutes": "soon"},
    ],
)
def test_create_schedule_validates_input(container, override):
    with pytest.raises(ValidationError):
        container.schedule_service.create_schedule(current_role=Role.ADMIN, config=dict(BASE, **override))


def test_deactivated_schedule_leaves_active_list(container):
    service = container.schedule_service
    schedule = service.create_schedule(current_role=Role.ADMIN, config=BASE)

    service.set_active(current_role=Role.ADMIN, schedule_id=schedule.schedule_id, is_active=False)

    assert service.list_active() == []


def test_unknown_schedule(container):
    with pytest.raises(NotFoundError):
        container.schedule_service.get(42)
