from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute, fetchone
from .directory import EnrollmentDirectory
from .model import Enrollment


class MySQLEnrollmentDirectory(EnrollmentDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> Enrollment:
        return Enrollment(
            enrollment_id=int(r["id"]),
            user_id=int(r["user_id"]),
            subject_id=int(r["subject_id"]),
            status=str(r.get("status") or "active"),
        )

    def get_active_enrollment(self, *, user_id: int, subject_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(
                cur,
                """
                SELECT id, user_id, subject_id, status
                FROM student_enrollments
                WHERE user_id=%s AND subject_id=%s AND status='active'
                """,
                (int(user_id), int(subject_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def get_enrollment(self, enrollment_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(
                cur,
                "SELECT id, user_id, subject_id, status FROM student_enrollments WHERE id=%s",
                (int(enrollment_id),),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def is_instructor_of(self, *, user_id: int, subject_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(
                cur,
                "SELECT 1 AS ok FROM teacher_subjects WHERE teacher_id=%s AND subject_id=%s",
                (int(user_id), int(subject_id)),
            )
            return fetchone(cur) is not None
