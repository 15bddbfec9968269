from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..common.validators import optional_text, require_positive_int
from ..core.enums import AttendanceStatus, NotificationKind, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..enrollments.directory import EnrollmentDirectory
from ..enrollments.model import Enrollment
from ..notifications.sink import NotificationSink, SafeNotifier
from ..sessions.service import require_subject_authority
from .model import AttendanceRecord, BulkItemError, BulkMarkItem, BulkMarkResult, ManualMark
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# Marks only land on active enrollments, however the student is addressed.
NOT_ENROLLED = "Student is not enrolled in this subject"

NOTIFY_TITLES = {
    AttendanceStatus.ABSENT: "Marked absent",
    AttendanceStatus.LATE: "Marked late",
}


def parse_status(value: str) -> AttendanceStatus:
    try:
        return AttendanceStatus.parse(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}")


class MarkingService:
    """Use case: instructors/admins set attendance directly, one student or a whole class."""

    def __init__(self, attendance: AttendanceRepository, directory: EnrollmentDirectory, notifications: NotificationSink):
        self._attendance = attendance
        self._directory = directory
        self._notifier = SafeNotifier(notifications)

    def mark_manual(
        self,
        *,
        current_role: Role,
        marker_id: int,
        enrollment_id: int,
        attendance_date: date,
        status: str,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        enrollment_id = require_positive_int(enrollment_id, "enrollment_id")
        new_status = parse_status(status)
        remarks = optional_text(remarks)

        enrollment = self._directory.get_enrollment(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        require_subject_authority(
            self._directory, current_role=current_role, user_id=marker_id, subject_id=enrollment.subject_id
        )
        if not enrollment.is_active:
            raise NotFoundError(NOT_ENROLLED)

        record = self._attendance.upsert_mark(
            enrollment_id=enrollment_id,
            attendance_date=attendance_date,
            status=new_status,
            marked_by=int(marker_id),
            remarks=remarks,
        )
        logger.info(
            "Enrollment %s marked %s for %s by user %s", enrollment_id, new_status.value, attendance_date, marker_id
        )
        self._notify(enrollment, new_status, attendance_date, remarks)
        return record

    def _resolve(self, item: BulkMarkItem, subject_id: int) -> Enrollment:
        if item.enrollment_id is not None:
            enrollment = self._directory.get_enrollment(int(item.enrollment_id))
            if not enrollment or enrollment.subject_id != subject_id:
                raise NotFoundError("Enrollment not found in this subject")
            if not enrollment.is_active:
                raise NotFoundError(NOT_ENROLLED)
            return enrollment
        if item.user_id is not None:
            enrollment = self._directory.get_active_enrollment(user_id=int(item.user_id), subject_id=subject_id)
            if not enrollment:
                raise NotFoundError(NOT_ENROLLED)
            return enrollment
        raise ValidationError("enrollment_id or user_id is required")

    def mark_bulk(
        self,
        *,
        current_role: Role,
        marker_id: int,
        subject_id: int,
        attendance_date: date,
        items: Sequence[BulkMarkItem],
    ) -> BulkMarkResult:
        subject_id = require_positive_int(subject_id, "subject_id")
        require_subject_authority(self._directory, current_role=current_role, user_id=marker_id, subject_id=subject_id)
        if not items:
            raise ValidationError("No attendance records given")

        result = BulkMarkResult()
        marks: List[ManualMark] = []
        targets: Dict[int, Enrollment] = {}

        for index, item in enumerate(items):
            try:
                enrollment = self._resolve(item, subject_id)
                status = parse_status(item.status)
                remarks = optional_text(item.remarks)
                if enrollment.enrollment_id in targets:
                    raise ValidationError("Student listed more than once")
            except (ValidationError, NotFoundError) as e:
                result.errors.append(
                    BulkItemError(index=index, message=str(e), enrollment_id=item.enrollment_id, user_id=item.user_id)
                )
                continue
            targets[enrollment.enrollment_id] = enrollment
            marks.append(
                ManualMark(
                    enrollment_id=enrollment.enrollment_id,
                    attendance_date=attendance_date,
                    status=status,
                    remarks=remarks,
                )
            )

        if marks:
            result.marked_count = self._attendance.upsert_marks(marks, marked_by=int(marker_id))
        logger.info(
            "Bulk attendance for subject %s on %s by user %s: %d marked, %d rejected",
            subject_id,
            attendance_date,
            marker_id,
            result.marked_count,
            len(result.errors),
        )

        for m in marks:
            self._notify(targets[m.enrollment_id], m.status, attendance_date, m.remarks)
        return result

    def _notify(self, enrollment: Enrollment, status: AttendanceStatus, attendance_date: date, remarks: Optional[str]) -> None:
        title = NOTIFY_TITLES.get(status)
        if not title:
            return
        message = f"You were marked {status.value} on {attendance_date:%Y-%m-%d}."
        if remarks:
            message = f"{message} Remarks: {remarks}"
        self._notifier.notify(
            user_id=enrollment.user_id,
            kind=NotificationKind.ATTENDANCE_WARNING,
            title=title,
            message=message,
            related_id=enrollment.enrollment_id,
        )
