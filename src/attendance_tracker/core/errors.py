from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .exceptions import (
    AuthorizationError,
    ConcurrencyError,
    DomainError,
    NotFoundError,
    PolicyViolationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; policy refusals are expected and are not logged.
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (PolicyViolationError, 409),
    (ConcurrencyError, 409),
)


def status_for(error: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = status_for(error)
        if isinstance(error, (NotFoundError, ConcurrencyError)):
            logger.warning(
                "%s: %s",
                error.code,
                error.message,
                extra={"error_code": error.code, "path": request.path, "method": request.method},
            )
        return jsonify(error_body(error.code, error.message)), status

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify(error_body(error.name.upper().replace(" ", "_"), error.description or error.name)), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception(
            "Unhandled error",
            extra={"error_code": "INTERNAL_ERROR", "path": request.path, "method": request.method},
        )
        return jsonify(error_body("INTERNAL_ERROR", "Unexpected server error")), 500
