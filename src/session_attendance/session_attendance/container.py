from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import MarkingService
from .attendance.verifier import CheckInVerifier
from .core.constants import DEFAULT_CODE_ATTEMPTS, DEFAULT_CODE_LENGTH, DEFAULT_SESSION_WINDOW_MINUTES, MAX_SESSION_WINDOW_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .enrollments.directory import EnrollmentDirectory
from .enrollments.mysql_enrollment_directory import MySQLEnrollmentDirectory
from .notifications.mysql_notification_sink import MySQLNotificationSink
from .notifications.sink import NotificationSink
from .sessions.codes import CodeGenerator
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    enrollments: EnrollmentDirectory
    notifications: NotificationSink

    session_service: SessionService
    check_in_verifier: CheckInVerifier
    marking_service: MarkingService


def wire(
    *,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    enrollments: EnrollmentDirectory,
    notifications: NotificationSink,
    settings: Any = None,
    conn: Optional[DatabaseConnection] = None,
    clock=None,
) -> Container:
    """Build services over whatever repositories are given (MySQL in the app, fakes in tests)."""

    session_service = SessionService(
        sessions_repo,
        enrollments,
        window_minutes=getattr(settings, "SESSION_WINDOW_MINUTES", DEFAULT_SESSION_WINDOW_MINUTES),
        max_window_minutes=getattr(settings, "MAX_SESSION_WINDOW_MINUTES", MAX_SESSION_WINDOW_MINUTES),
        code_generator=CodeGenerator(code_length=getattr(settings, "SESSION_CODE_LENGTH", DEFAULT_CODE_LENGTH)),
        code_attempts=getattr(settings, "CODE_GENERATION_ATTEMPTS", DEFAULT_CODE_ATTEMPTS),
        clock=clock,
    )
    check_in_verifier = CheckInVerifier(session_service, attendance_repo, enrollments, clock=clock)
    marking_service = MarkingService(attendance_repo, enrollments, notifications)

    return Container(
        conn=conn,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        enrollments=enrollments,
        notifications=notifications,
        session_service=session_service,
        check_in_verifier=check_in_verifier,
        marking_service=marking_service,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire(
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        enrollments=MySQLEnrollmentDirectory(conn),
        notifications=MySQLNotificationSink(conn),
        settings=settings,
        conn=conn,
    )
