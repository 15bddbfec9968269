from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Enrollment:
    """A user's membership in a subject, owned by the course directory."""

    enrollment_id: int
    user_id: int
    subject_id: int
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"
