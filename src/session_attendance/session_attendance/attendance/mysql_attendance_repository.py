from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.constants import UQ_ENROLLMENT_DATE, UQ_SESSION_ORIGIN
from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateKeyError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute, fetchone
from .model import AttendanceRecord, ManualMark
from .repository import AttendanceRepository

_SELECT = """
    SELECT attendance_id, enrollment_id, attendance_date, status, marked_by, session_id, origin, remarks
    FROM student_attendance
"""

_UPSERT_MARK = """
    INSERT INTO student_attendance(enrollment_id, attendance_date, status, marked_by, remarks)
    VALUES(%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE status=VALUES(status), marked_by=VALUES(marked_by), remarks=VALUES(remarks)
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        enrollment_id=int(r["enrollment_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]),
        session_id=int(r["session_id"]) if r.get("session_id") is not None else None,
        origin=r.get("origin"),
        remarks=r.get("remarks"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _select_day(cur, enrollment_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        execute(cur, _SELECT + " WHERE enrollment_id=%s AND attendance_date=%s", (int(enrollment_id), attendance_date))
        r = fetchone(cur)
        return _to_record(r) if r else None

    def find_by_session_origin(self, *, session_id: int, origin: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(cur, _SELECT + " WHERE session_id=%s AND origin=%s", (int(session_id), origin))
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        # Not INSERT ... ON DUPLICATE KEY UPDATE: with two unique keys MySQL would
        # update whichever row collided, including another student's row on an
        # origin clash. Insert first; fall back to updating the enrollment's row.
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                execute(
                    cur,
                    """
                    INSERT INTO student_attendance(enrollment_id, attendance_date, status, marked_by, session_id, origin)
                    SELECT %s, %s, 'present', %s, s.session_id, %s
                    FROM attendance_sessions s
                    WHERE s.session_id=%s AND s.is_active=1 AND s.expires_at > %s
                    """,
                    (int(enrollment_id), attendance_date, int(marked_by), origin, int(session_id), now),
                )
                written = cur.rowcount > 0
            except DuplicateKeyError as e:
                if e.constraint != UQ_ENROLLMENT_DATE:
                    raise
                execute(
                    cur,
                    """
                    UPDATE student_attendance sa
                    JOIN attendance_sessions s ON s.session_id=%s
                    SET sa.status='present', sa.marked_by=%s, sa.session_id=s.session_id, sa.origin=%s
                    WHERE sa.enrollment_id=%s AND sa.attendance_date=%s
                      AND s.is_active=1 AND s.expires_at > %s
                    """,
                    (int(session_id), int(marked_by), origin, int(enrollment_id), attendance_date, now),
                )
                written = cur.rowcount > 0
                if not written:
                    # Zero rows also means "nothing changed": the row already holds this session and origin.
                    existing = self._select_day(cur, enrollment_id, attendance_date)
                    if existing and existing.session_id == int(session_id) and existing.origin == origin:
                        raise DuplicateKeyError("Origin already used for this session", constraint=UQ_SESSION_ORIGIN)

            if not written:
                return None
            return self._select_day(cur, enrollment_id, attendance_date)

    def upsert_mark(
        self,
        *,
        enrollment_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        marked_by: int,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(cur, _UPSERT_MARK, (int(enrollment_id), attendance_date, status.value, int(marked_by), remarks))
            return self._select_day(cur, enrollment_id, attendance_date)

    def upsert_marks(self, marks: Sequence[ManualMark], *, marked_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            for m in marks:
                execute(
                    cur,
                    _UPSERT_MARK,
                    (int(m.enrollment_id), m.attendance_date, m.status.value, int(marked_by), m.remarks),
                )
            return len(marks)
