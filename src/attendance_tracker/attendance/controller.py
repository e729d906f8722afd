from __future__ import annotations

from flask import Flask

from ..common.validators import require_positive_id
from ..common.web import admin_required, current_role, current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.enums import BreakType, Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import AttendanceRecord


def register(app: Flask, container: Container) -> None:
    engine = container.attendance_engine

    def owned_record(record_id: int) -> AttendanceRecord:
        record = engine.get_record(record_id)
        if current_role() != Role.ADMIN and record.user_id != current_user_id():
            raise AuthorizationError("You can only act on your own attendance")
        return record

    def acting_user_id(data: dict) -> int:
        # Admins may act for an employee; everyone else acts for themselves.
        if current_role() == Role.ADMIN and data.get("user_id") is not None:
            return require_positive_id(data["user_id"], "Employee")
        return current_user_id()

    @app.route("/api/sessions/<int:session_id>/can-check-in", methods=["GET"], endpoint="can_check_in")
    @login_required
    def can_check_in(session_id: int):
        return ok(engine.can_check_in(current_user_id(), session_id))

    @app.route("/api/sessions/<int:session_id>/check-in", methods=["POST"], endpoint="check_in")
    @login_required
    def check_in(session_id: int):
        record = engine.check_in(acting_user_id(json_body()), session_id)
        return ok(record, 201)

    @app.route("/api/records/<int:record_id>", methods=["GET"], endpoint="get_record")
    @login_required
    def get_record(record_id: int):
        record = owned_record(record_id)
        return ok({"record": record, "breaks": list(engine.breaks_for_record(record.attendance_id))})

    @app.route("/api/records/<int:record_id>/breaks/start", methods=["POST"], endpoint="start_break")
    @login_required
    def start_break(record_id: int):
        owned_record(record_id)
        raw_type = json_body().get("break_type") or BreakType.REGULAR.value
        try:
            break_type = BreakType(raw_type)
        except ValueError:
            raise ValidationError("Unknown break type") from None
        return ok(engine.start_break(record_id, break_type=break_type))

    @app.route("/api/records/<int:record_id>/breaks/end", methods=["POST"], endpoint="end_break")
    @login_required
    def end_break(record_id: int):
        owned_record(record_id)
        return ok(engine.end_break(record_id))

    @app.route("/api/records/<int:record_id>/breaks/status", methods=["GET"], endpoint="break_status")
    @login_required
    def break_status(record_id: int):
        owned_record(record_id)
        return ok(engine.break_status(record_id))

    @app.route("/api/records/<int:record_id>/check-out", methods=["POST"], endpoint="check_out")
    @login_required
    def check_out(record_id: int):
        owned_record(record_id)
        return ok(engine.check_out(record_id))

    @app.route("/api/records/<int:record_id>", methods=["PATCH"], endpoint="correct_record")
    @admin_required
    def correct_record(record_id: int):
        data = json_body()
        reason = data.pop("reason", "")
        record = engine.correct_record(
            record_id,
            current_role=current_role(),
            changes=data,
            reason=reason,
            actor_id=current_user_id(),
        )
        return ok(record)
