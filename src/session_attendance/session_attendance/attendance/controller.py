from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..web.identity import caller_origin, current_caller, roles_required
from ..web.responses import check_in_response, ok
from .model import AttendanceRecord, BulkMarkItem


def _record_dict(r: AttendanceRecord) -> dict:
    # Origins stay server-side; staff only see whether a session produced the mark.
    return {
        "enrollment_id": r.enrollment_id,
        "date": r.attendance_date.isoformat(),
        "status": r.status.value,
        "remarks": r.remarks,
        "self_checked_in": r.session_id is not None,
    }


def _int_or_none(value, field_name: str):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def _bulk_items(raw) -> list[BulkMarkItem]:
    if not isinstance(raw, list):
        raise ValidationError("records must be a list")
    items: list[BulkMarkItem] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("each record must be an object")
        items.append(
            BulkMarkItem(
                status=str(entry.get("status") or ""),
                enrollment_id=_int_or_none(entry.get("enrollment_id"), "enrollment_id"),
                user_id=_int_or_none(entry.get("user_id"), "user_id"),
                remarks=entry.get("remarks"),
            )
        )
    return items


def register(app: Flask, container: Container) -> None:
    staff_required = roles_required(Role.ADMIN, Role.INSTRUCTOR)
    student_required = roles_required(Role.STUDENT)

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="check_in")
    @student_required
    def check_in():
        data = request.get_json(silent=True) or {}
        code = data.get("code")
        result = container.check_in_verifier.attempt(
            code=code if isinstance(code, str) else "",
            user_id=current_caller().user_id,
            origin=caller_origin(),
        )
        return check_in_response(result)

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @staff_required
    def mark_attendance():
        data = request.get_json(silent=True) or {}
        caller = current_caller()
        record = container.marking_service.mark_manual(
            current_role=caller.role,
            marker_id=caller.user_id,
            enrollment_id=data.get("enrollment_id"),
            attendance_date=parse_iso_date(data.get("date") or ""),
            status=str(data.get("status") or ""),
            remarks=data.get("remarks"),
        )
        return ok(_record_dict(record))

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="mark_bulk")
    @staff_required
    def mark_bulk():
        data = request.get_json(silent=True) or {}
        caller = current_caller()
        result = container.marking_service.mark_bulk(
            current_role=caller.role,
            marker_id=caller.user_id,
            subject_id=data.get("subject_id"),
            attendance_date=parse_iso_date(data.get("date") or ""),
            items=_bulk_items(data.get("records")),
        )
        return ok(result.to_dict())
