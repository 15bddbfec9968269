"""Self check-in against an open attendance session.

Checks run in a fixed order and stop at the first failure, so the student
always learns the one thing to fix:

1. the code names a session that is active and not yet expired
2. the caller's network origin matches the opener's (origin-bound sessions only)
3. the origin has not already been used for this session
4. the caller is actively enrolled in the session's subject
5. today's record is written as present

Step 3 is repeated by the storage layer's (session, origin) unique key during
step 5; a conflict there is the authoritative DEVICE_ALREADY_USED.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..common.datetime_utils import now_local
from ..core.enums import CheckInError
from ..core.exceptions import DuplicateKeyError, StorageError
from ..enrollments.directory import EnrollmentDirectory
from ..sessions.service import SessionService
from .model import CheckInResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class CheckInVerifier:
    def __init__(
        self,
        sessions: SessionService,
        attendance: AttendanceRepository,
        directory: EnrollmentDirectory,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._directory = directory
        self._clock = clock or now_local

    def attempt(self, *, code: str, user_id: int, origin: str, now: datetime | None = None) -> CheckInResult:
        code = (code or "").strip()
        origin = (origin or "").strip()
        if not code or not origin or not user_id:
            return CheckInResult.failure(CheckInError.MALFORMED_INPUT)

        now = now or self._clock()
        try:
            return self._attempt(code=code, user_id=int(user_id), origin=origin, now=now)
        except StorageError:
            logger.error("Check-in by user %s failed on storage", user_id, exc_info=True)
            return CheckInResult.failure(CheckInError.STORAGE_UNAVAILABLE)

    def _reject(self, error: CheckInError, *, user_id: int, session_id: int | None = None) -> CheckInResult:
        logger.warning("Check-in rejected: user=%s session=%s reason=%s", user_id, session_id, error.value)
        return CheckInResult.failure(error)

    def _attempt(self, *, code: str, user_id: int, origin: str, now: datetime) -> CheckInResult:
        session = self._sessions.lookup(code)
        if session is None or not session.is_usable(now):
            return self._reject(CheckInError.INVALID_OR_EXPIRED_SESSION, user_id=user_id)

        sid = session.session_id
        if session.origin_bound and origin != session.authorized_origin:
            logger.debug("Origin %s does not match session %s", origin, sid)
            return self._reject(CheckInError.ORIGIN_MISMATCH, user_id=user_id, session_id=sid)

        if self._attendance.find_by_session_origin(session_id=sid, origin=origin):
            return self._reject(CheckInError.DEVICE_ALREADY_USED, user_id=user_id, session_id=sid)

        enrollment = self._directory.get_active_enrollment(user_id=user_id, subject_id=session.subject_id)
        if enrollment is None:
            return self._reject(CheckInError.NOT_ENROLLED, user_id=user_id, session_id=sid)

        try:
            record = self._attendance.record_self_checkin(
                enrollment_id=enrollment.enrollment_id,
                attendance_date=now.date(),
                marked_by=user_id,
                session_id=sid,
                origin=origin,
                now=now,
            )
        except DuplicateKeyError:
            return self._reject(CheckInError.DEVICE_ALREADY_USED, user_id=user_id, session_id=sid)

        if record is None:
            # Closed or expired between the lookup and the write.
            return self._reject(CheckInError.INVALID_OR_EXPIRED_SESSION, user_id=user_id, session_id=sid)

        logger.info("Check-in accepted: user=%s session=%s enrollment=%s", user_id, sid, enrollment.enrollment_id)
        return CheckInResult.success(record)
