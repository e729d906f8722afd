"""Helpers shared by the JSON controllers."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.errors import error_body
from ..core.exceptions import ValidationError


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify(error_body("UNAUTHENTICATED", "Please sign in to continue")), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify(error_body("UNAUTHENTICATED", "Please sign in to continue")), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify(error_body("FORBIDDEN", "You do not have permission to perform this action")), 403
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    try:
        return Role(session.get("role"))
    except ValueError:
        return Role.EMPLOYEE


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def to_json(value: Any) -> Any:
    """Plain JSON form of domain objects (dataclasses, enums, times, decimals)."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    return value


def ok(data: Any, status: int = 200):
    return jsonify({"success": True, "data": to_json(data)}), status
