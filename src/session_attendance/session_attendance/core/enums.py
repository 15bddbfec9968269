from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles supplied by the identity layer."""

    ADMIN = "admin"
    INSTRUCTOR = "teacher"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Attendance status stored per enrollment and day."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"

    @classmethod
    def parse(cls, value: str) -> "AttendanceStatus":
        """Accept full names or the one-letter sheet codes (P/A/L/E)."""

        v = (value or "").strip().lower()
        for status in cls:
            if v == status.value or v == status.value[0]:
                return status
        raise ValueError(f"Unknown attendance status: {value!r}")


class SessionMode(str, Enum):
    """WIFI sessions are bound to the opener's network origin; QR sessions are not."""

    WIFI = "wifi"
    QR = "qr"


class SessionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    EXPIRED = "expired"


class CheckInError(str, Enum):
    """Distinct outcomes of a failed self check-in."""

    INVALID_OR_EXPIRED_SESSION = "invalid_or_expired_session"
    ORIGIN_MISMATCH = "origin_mismatch"
    DEVICE_ALREADY_USED = "device_already_used"
    NOT_ENROLLED = "not_enrolled"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    MALFORMED_INPUT = "malformed_input"


class NotificationKind(str, Enum):
    ATTENDANCE_WARNING = "attendance_warning"
