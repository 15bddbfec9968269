from __future__ import annotations

import io

import qrcode
from flask import Flask, request, send_file

from ..container import Container
from ..core.enums import CheckInError, Role, SessionMode
from ..core.exceptions import ValidationError
from ..web.identity import caller_origin, current_caller, roles_required
from ..web.responses import CHECK_IN_ERRORS, fail, ok


def _parse_mode(value) -> SessionMode:
    try:
        return SessionMode((value or SessionMode.WIFI.value).strip().lower())
    except (AttributeError, ValueError):
        raise ValidationError("mode must be 'wifi' or 'qr'")


def register(app: Flask, container: Container) -> None:
    staff_required = roles_required(Role.ADMIN, Role.INSTRUCTOR)
    svc = container.session_service

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="open_session")
    @staff_required
    def open_session():
        data = request.get_json(silent=True) or {}
        caller = current_caller()
        session = svc.open_session(
            current_role=caller.role,
            owner_id=caller.user_id,
            subject_id=data.get("subject_id"),
            caller_origin=caller_origin(),
            mode=_parse_mode(data.get("mode")),
            duration_minutes=data.get("duration_minutes"),
        )
        return ok(svc.describe(session).to_dict(), 201)

    @app.route("/api/attendance/sessions/<int:session_id>/close", methods=["POST"], endpoint="close_session")
    @staff_required
    def close_session(session_id: int):
        caller = current_caller()
        svc.close_session(current_role=caller.role, caller_id=caller.user_id, session_id=session_id)
        return ok({"session_id": session_id, "closed": True})

    @app.route("/api/attendance/sessions/active", methods=["GET"], endpoint="active_sessions")
    @staff_required
    def active_sessions():
        caller = current_caller()
        views = svc.list_active(current_role=caller.role, owner_id=caller.user_id)
        return ok([v.to_dict() for v in views])

    @app.route("/api/attendance/sessions/validate", methods=["GET"], endpoint="validate_session")
    def validate_session():
        """Let a signed-in caller check a code before checking in; reveals nothing about origins."""
        current_caller()
        code = (request.args.get("code") or "").strip()
        if not code:
            error = CheckInError.MALFORMED_INPUT
        else:
            session = svc.find_usable(code)
            if session:
                return ok(svc.describe(session).to_dict())
            error = CheckInError.INVALID_OR_EXPIRED_SESSION
        status, message = CHECK_IN_ERRORS[error]
        return fail(error.value, message, status)

    @app.route("/api/attendance/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="session_qr")
    @staff_required
    def session_qr(session_id: int):
        """Session code as a QR image for projecting in class."""
        caller = current_caller()
        session = svc.get_owned(current_role=caller.role, caller_id=caller.user_id, session_id=session_id)

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(session.code)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        buf.seek(0)
        return send_file(buf, mimetype="image/png")
