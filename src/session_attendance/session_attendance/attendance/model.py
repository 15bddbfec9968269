from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from ..core.enums import AttendanceStatus, CheckInError


@dataclass(frozen=True)
class AttendanceRecord:
    """One enrollment's attendance for one calendar day."""

    attendance_id: int
    enrollment_id: int
    attendance_date: date
    status: AttendanceStatus
    marked_by: int
    session_id: Optional[int] = None
    origin: Optional[str] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class CheckInResult:
    """Outcome of a self check-in: either a committed record or exactly one error kind."""

    record: Optional[AttendanceRecord] = None
    error: Optional[CheckInError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record: AttendanceRecord) -> "CheckInResult":
        return cls(record=record)

    @classmethod
    def failure(cls, error: CheckInError) -> "CheckInResult":
        return cls(error=error)


@dataclass(frozen=True)
class ManualMark:
    enrollment_id: int
    attendance_date: date
    status: AttendanceStatus
    remarks: Optional[str] = None


@dataclass(frozen=True)
class BulkMarkItem:
    """One row of a bulk request; names the student by enrollment or by user."""

    status: str
    enrollment_id: Optional[int] = None
    user_id: Optional[int] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class BulkItemError:
    index: int
    message: str
    enrollment_id: Optional[int] = None
    user_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "enrollment_id": self.enrollment_id,
            "user_id": self.user_id,
            "message": self.message,
        }


@dataclass
class BulkMarkResult:
    marked_count: int = 0
    errors: List[BulkItemError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"marked_count": self.marked_count, "errors": [e.to_dict() for e in self.errors]}
