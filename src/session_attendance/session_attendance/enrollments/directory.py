from __future__ import annotations

from typing import Optional, Protocol

from .model import Enrollment


class EnrollmentDirectory(Protocol):
    """Read-only view of the course/enrollment directory.

    The attendance services depend on this interface; the directory itself
    belongs to the surrounding system.
    """

    def get_active_enrollment(self, *, user_id: int, subject_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def get_enrollment(self, enrollment_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def is_instructor_of(self, *, user_id: int, subject_id: int) -> bool:
        raise NotImplementedError
