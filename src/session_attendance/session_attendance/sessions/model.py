from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionMode, SessionState


@dataclass(frozen=True)
class AttendanceSession:
    """A short-lived check-in window opened by an instructor for one subject."""

    session_id: int
    subject_id: int
    owner_id: int
    code: str
    mode: SessionMode
    authorized_origin: Optional[str]
    created_at: datetime
    expires_at: datetime
    active: bool = True

    @property
    def origin_bound(self) -> bool:
        return self.authorized_origin is not None

    def is_usable(self, now: datetime) -> bool:
        return self.active and now < self.expires_at

    def state(self, now: datetime) -> SessionState:
        if not self.active:
            return SessionState.CLOSED
        if now >= self.expires_at:
            return SessionState.EXPIRED
        return SessionState.OPEN


@dataclass(frozen=True)
class ActiveSession:
    """Read-model for the instructor's list of running sessions."""

    session: AttendanceSession
    checked_in_count: int


@dataclass(frozen=True)
class SessionView:
    """What the instructor gets back. Never includes the authorized origin."""

    session_id: int
    subject_id: int
    code: str
    mode: SessionMode
    state: SessionState
    origin_bound: bool
    created_at: datetime
    expires_at: datetime
    seconds_remaining: int
    checked_in_count: Optional[int] = None

    def to_dict(self) -> dict:
        out = {
            "session_id": self.session_id,
            "subject_id": self.subject_id,
            "code": self.code,
            "mode": self.mode.value,
            "state": self.state.value,
            "origin_bound": self.origin_bound,
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "expires_at": self.expires_at.isoformat(timespec="seconds"),
            "seconds_remaining": self.seconds_remaining,
        }
        if self.checked_in_count is not None:
            out["checked_in_count"] = self.checked_in_count
        return out
