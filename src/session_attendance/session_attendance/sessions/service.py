from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..common.datetime_utils import now_local, seconds_until
from ..common.validators import require_positive_int
from ..core.constants import (
    DEFAULT_CODE_ATTEMPTS,
    DEFAULT_SESSION_WINDOW_MINUTES,
    MAX_SESSION_WINDOW_MINUTES,
    UQ_SESSION_CODE,
)
from ..core.enums import Role, SessionMode
from ..core.exceptions import (
    AuthorizationError,
    DuplicateKeyError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from ..enrollments.directory import EnrollmentDirectory
from .codes import CodeGenerator, normalize_code
from .model import AttendanceSession, SessionView
from .repository import SessionRepository

logger = logging.getLogger(__name__)

STAFF_ROLES = (Role.ADMIN, Role.INSTRUCTOR)


def require_subject_authority(directory: EnrollmentDirectory, *, current_role: Role, user_id: int, subject_id: int) -> None:
    """Admins may act on any subject; instructors only on subjects they teach."""

    if current_role == Role.ADMIN:
        return
    if current_role == Role.INSTRUCTOR and directory.is_instructor_of(user_id=int(user_id), subject_id=int(subject_id)):
        return
    raise AuthorizationError("You are not allowed to manage attendance for this subject")


class SessionService:
    """Use case: open, close and inspect attendance sessions (instructor side)."""

    def __init__(
        self,
        sessions: SessionRepository,
        directory: EnrollmentDirectory,
        *,
        window_minutes: int = DEFAULT_SESSION_WINDOW_MINUTES,
        max_window_minutes: int = MAX_SESSION_WINDOW_MINUTES,
        code_generator: CodeGenerator | None = None,
        code_attempts: int = DEFAULT_CODE_ATTEMPTS,
        clock: Callable[[], datetime] | None = None,
    ):
        self._sessions = sessions
        self._directory = directory
        self._window_minutes = int(window_minutes)
        self._max_window_minutes = int(max_window_minutes)
        self._codes = code_generator or CodeGenerator()
        self._code_attempts = max(1, int(code_attempts))
        self._clock = clock or now_local

    def _window(self, duration_minutes: Optional[int]) -> timedelta:
        if duration_minutes is None:
            return timedelta(minutes=self._window_minutes)
        minutes = require_positive_int(duration_minutes, "duration_minutes")
        if minutes > self._max_window_minutes:
            raise ValidationError(f"duration_minutes must be at most {self._max_window_minutes}")
        return timedelta(minutes=minutes)

    def open_session(
        self,
        *,
        current_role: Role,
        owner_id: int,
        subject_id: int,
        caller_origin: Optional[str],
        mode: SessionMode = SessionMode.WIFI,
        duration_minutes: Optional[int] = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        subject_id = require_positive_int(subject_id, "subject_id")
        require_subject_authority(self._directory, current_role=current_role, user_id=owner_id, subject_id=subject_id)

        origin = (caller_origin or "").strip() or None
        if mode == SessionMode.WIFI and not origin:
            raise ValidationError("Cannot bind the session: caller network origin is unknown")
        authorized_origin = origin if mode == SessionMode.WIFI else None

        window = self._window(duration_minutes)
        now = now or self._clock()

        for attempt in range(1, self._code_attempts + 1):
            code = self._codes.generate(mode)
            try:
                session = self._sessions.create(
                    subject_id=subject_id,
                    owner_id=int(owner_id),
                    code=code,
                    mode=mode,
                    authorized_origin=authorized_origin,
                    created_at=now,
                    expires_at=now + window,
                )
            except DuplicateKeyError as e:
                if e.constraint not in (None, UQ_SESSION_CODE):
                    raise
                logger.debug("Session code collision on attempt %d, retrying", attempt)
                continue

            logger.info(
                "Session %s opened for subject %s by user %s (mode=%s, expires_at=%s)",
                session.session_id,
                subject_id,
                owner_id,
                mode.value,
                session.expires_at.isoformat(timespec="seconds"),
            )
            return session

        logger.error("Could not allocate a unique session code after %d attempts", self._code_attempts)
        raise StorageUnavailableError("Could not allocate a session code, please retry")

    def get_owned(self, *, current_role: Role, caller_id: int, session_id: int) -> AttendanceSession:
        """A session the caller may manage; anything else looks like a missing session."""

        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        if current_role != Role.ADMIN and session.owner_id != int(caller_id):
            raise NotFoundError("Session not found")
        return session

    def close_session(self, *, current_role: Role, caller_id: int, session_id: int) -> None:
        session = self.get_owned(current_role=current_role, caller_id=caller_id, session_id=session_id)
        if not session.active:
            return
        self._sessions.deactivate(session.session_id)
        logger.info("Session %s closed by user %s", session.session_id, caller_id)

    def lookup(self, code: str) -> Optional[AttendanceSession]:
        """Find a session by code without judging whether it is still usable."""

        code = normalize_code(code)
        if not code:
            return None
        return self._sessions.get_by_code(code)

    def find_usable(self, code: str, *, now: datetime | None = None) -> Optional[AttendanceSession]:
        """The session behind a code, or None when it is unknown, closed or expired."""

        session = self.lookup(code)
        if session is None or not session.is_usable(now or self._clock()):
            return None
        return session

    def describe(
        self,
        session: AttendanceSession,
        *,
        checked_in_count: Optional[int] = None,
        now: datetime | None = None,
    ) -> SessionView:
        now = now or self._clock()
        return SessionView(
            session_id=session.session_id,
            subject_id=session.subject_id,
            code=session.code,
            mode=session.mode,
            state=session.state(now),
            origin_bound=session.origin_bound,
            created_at=session.created_at,
            expires_at=session.expires_at,
            seconds_remaining=seconds_until(session.expires_at, now) if session.active else 0,
            checked_in_count=checked_in_count,
        )

    def list_active(self, *, current_role: Role, owner_id: int, now: datetime | None = None) -> List[SessionView]:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("Only instructors can list sessions")

        now = now or self._clock()
        rows = self._sessions.list_active_for_owner(int(owner_id), now=now)
        return [self.describe(r.session, checked_in_count=r.checked_in_count, now=now) for r in rows]
