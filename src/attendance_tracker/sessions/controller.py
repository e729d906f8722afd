from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_positive_id
from ..common.web import admin_required, current_role, current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.exceptions import ValidationError


def _date_arg(value, default):
    if not value:
        return default
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError("Date must be formatted as YYYY-MM-DD") from None


def register(app: Flask, container: Container) -> None:
    sessions = container.session_service

    @app.route("/api/sessions", methods=["POST"], endpoint="create_session")
    @admin_required
    def create_session():
        data = json_body()
        employee_ids = data.get("employee_ids")
        if employee_ids is not None:
            if not isinstance(employee_ids, list):
                raise ValidationError("employee_ids must be a list")
            employee_ids = [require_positive_id(u, "Employee") for u in employee_ids]

        session = sessions.activate_session_for_date(
            current_role=current_role(),
            schedule_id=require_positive_id(data.get("schedule_id"), "Schedule"),
            session_date=_date_arg(data.get("session_date"), container.clock.now().date()),
            employee_ids=employee_ids,
            actor_id=current_user_id(),
        )
        return ok(session, 201)

    @app.route("/api/sessions", methods=["GET"], endpoint="list_sessions")
    @login_required
    def list_sessions():
        session_date = _date_arg(request.args.get("date"), container.clock.now().date())
        return ok(list(sessions.find_active_for_date(session_date)))

    @app.route("/api/sessions/<int:session_id>/lock", methods=["POST"], endpoint="lock_session")
    @admin_required
    def lock_session(session_id: int):
        return ok(sessions.lock(current_role=current_role(), session_id=session_id, actor_id=current_user_id()))

    @app.route("/api/sessions/<int:session_id>/unlock", methods=["POST"], endpoint="unlock_session")
    @admin_required
    def unlock_session(session_id: int):
        return ok(sessions.unlock(current_role=current_role(), session_id=session_id, actor_id=current_user_id()))

    @app.route("/api/sessions/<int:session_id>/records", methods=["GET"], endpoint="session_records")
    @admin_required
    def session_records(session_id: int):
        return ok(list(container.attendance_engine.records_for_session(session_id)))
