from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import SessionMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute, fetchall, fetchone
from .model import ActiveSession, AttendanceSession
from .repository import SessionRepository

_COLUMNS = """
    s.session_id, s.subject_id, s.owner_id, s.mode, s.session_code,
    s.authorized_origin, s.created_at, s.expires_at, s.is_active
"""


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        subject_id=int(r["subject_id"]),
        owner_id=int(r["owner_id"]),
        code=r["session_code"],
        mode=SessionMode(r["mode"]),
        authorized_origin=r.get("authorized_origin"),
        created_at=r["created_at"],
        expires_at=r["expires_at"],
        active=bool(r["is_active"]),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        subject_id: int,
        owner_id: int,
        code: str,
        mode: SessionMode,
        authorized_origin: Optional[str],
        created_at: datetime,
        expires_at: datetime,
    ) -> AttendanceSession:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(
                cur,
                """
                INSERT INTO attendance_sessions(
                    subject_id, owner_id, mode, session_code, authorized_origin, created_at, expires_at, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (int(subject_id), int(owner_id), mode.value, code, authorized_origin, created_at, expires_at),
            )
            session_id = int(cur.lastrowid)

        return AttendanceSession(
            session_id=session_id,
            subject_id=int(subject_id),
            owner_id=int(owner_id),
            code=code,
            mode=mode,
            authorized_origin=authorized_origin,
            created_at=created_at,
            expires_at=expires_at,
            active=True,
        )

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(cur, f"SELECT {_COLUMNS} FROM attendance_sessions s WHERE s.session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_code(self, code: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(cur, f"SELECT {_COLUMNS} FROM attendance_sessions s WHERE s.session_code=%s", (code,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def deactivate(self, session_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(cur, "UPDATE attendance_sessions SET is_active=0 WHERE session_id=%s", (int(session_id),))
            return cur.rowcount > 0

    def list_active_for_owner(self, owner_id: int, *, now: datetime) -> Sequence[ActiveSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(
                cur,
                f"""
                SELECT {_COLUMNS}, COUNT(sa.attendance_id) AS checked_in_count
                FROM attendance_sessions s
                LEFT JOIN student_attendance sa ON sa.session_id = s.session_id
                WHERE s.owner_id=%s AND s.is_active=1 AND s.expires_at > %s
                GROUP BY s.session_id
                ORDER BY s.created_at DESC
                """,
                (int(owner_id), now),
            )
            return [
                ActiveSession(session=_to_session(r), checked_in_count=int(r.get("checked_in_count") or 0))
                for r in fetchall(cur)
            ]
