from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, ManualMark


class AttendanceRepository(Protocol):
    """Attendance ledger.

    Two unique keys must be enforced by the store itself: one row per
    (enrollment_id, attendance_date) and one row per (session_id, origin).
    """

    def find_by_session_origin(self, *, session_id: int, origin: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def record_self_checkin(
        self,
        *,
        enrollment_id: int,
        attendance_date: date,
        marked_by: int,
        session_id: int,
        origin: str,
        now: datetime,
    ) -> Optional[AttendanceRecord]:
        """Write today's row as present for this session and origin.

        Inserts, or overwrites an existing row for the same enrollment and day.
        The write only lands while the session is still active and unexpired
        at ``now``; otherwise returns None. Raises DuplicateKeyError when the
        (session, origin) pair already belongs to a row.
        """

        raise NotImplementedError

    def upsert_mark(
        self,
        *,
        enrollment_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by: int,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def upsert_marks(self, marks: Sequence[ManualMark], *, marked_by: int) -> int:
        """Apply all marks in one transaction; any storage failure rolls back the whole batch."""

        raise NotImplementedError
