from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..attendance.model import CheckInResult
from ..core.enums import CheckInError
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CHECK_IN_ERRORS = {
    CheckInError.MALFORMED_INPUT: (400, "Attendance code is required"),
    CheckInError.INVALID_OR_EXPIRED_SESSION: (404, "This attendance code is invalid or has expired"),
    CheckInError.ORIGIN_MISMATCH: (403, "Connect to the classroom network to check in"),
    CheckInError.DEVICE_ALREADY_USED: (409, "This device has already been used to check in for this session"),
    CheckInError.NOT_ENROLLED: (403, "You are not enrolled in this subject"),
    CheckInError.STORAGE_UNAVAILABLE: (503, "Attendance is temporarily unavailable, please try again"),
}

DOMAIN_ERRORS = (
    (ValidationError, 400, "validation_error"),
    (AuthenticationError, 401, "unauthenticated"),
    (AuthorizationError, 403, "forbidden"),
    (NotFoundError, 404, "not_found"),
)


def ok(data=None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def fail(error: str, message: str, status: int):
    return jsonify({"success": False, "error": error, "message": message}), status


def check_in_response(result: CheckInResult):
    if result.ok:
        return ok({"status": result.record.status.value, "date": result.record.attendance_date.isoformat()})
    status, message = CHECK_IN_ERRORS[result.error]
    return fail(result.error.value, message, status)


def register_error_handlers(app: Flask) -> None:
    for exc_type, status, kind in DOMAIN_ERRORS:

        def handler(e, status=status, kind=kind):
            return fail(kind, str(e), status)

        app.register_error_handler(exc_type, handler)

    @app.errorhandler(StorageError)
    def handle_storage(e):
        logger.error("Storage failure: %s", e)
        return fail("storage_unavailable", "Attendance is temporarily unavailable, please try again", 503)

    @app.errorhandler(HTTPException)
    def handle_http(e):
        return fail(e.name.lower().replace(" ", "_"), e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.error("Unhandled exception: %s", e, exc_info=True)
        return fail("internal_error", str(e) if app.debug else "Internal server error", 500)
