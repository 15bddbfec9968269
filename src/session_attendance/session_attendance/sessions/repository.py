from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionMode
from .model import ActiveSession, AttendanceSession


class SessionRepository(Protocol):
    """Durable store of attendance sessions.

    Sessions are never deleted; closing only clears the active flag.
    """

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
        """Raises DuplicateKeyError(uq_session_code) when the code is already taken."""

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def deactivate(self, session_id: int) -> bool:
        raise NotImplementedError

    def list_active_for_owner(self, owner_id: int, *, now: datetime) -> Sequence[ActiveSession]:
        raise NotImplementedError
