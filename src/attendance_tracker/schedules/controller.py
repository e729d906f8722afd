from __future__ import annotations

from flask import Flask

from ..common.web import admin_required, current_role, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/schedules", methods=["POST"], endpoint="create_schedule")
    @admin_required
    def create_schedule():
        schedule = container.schedule_service.create_schedule(current_role=current_role(), config=json_body())
        return ok(schedule, 201)

    @app.route("/api/schedules", methods=["GET"], endpoint="list_schedules")
    @login_required
    def list_schedules():
        return ok(list(container.schedule_service.list_active()))

    @app.route("/api/schedules/<int:schedule_id>", methods=["PATCH"], endpoint="update_schedule_status")
    @admin_required
    def update_schedule_status(schedule_id: int):
        data = json_body()
        schedule = container.schedule_service.set_active(
            current_role=current_role(),
            schedule_id=schedule_id,
            is_active=bool(data.get("is_active", True)),
        )
        return ok(schedule)
