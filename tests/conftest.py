from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from session_attendance.attendance.model import AttendanceRecord
from session_attendance.container import wire
from session_attendance.core.constants import UQ_SESSION_CODE, UQ_SESSION_ORIGIN
from session_attendance.core.enums import AttendanceStatus, Role, SessionMode
from session_attendance.core.exceptions import DuplicateKeyError, StorageUnavailableError
from session_attendance.enrollments.model import Enrollment
from session_attendance.sessions.model import ActiveSession, AttendanceSession

SUBJECT = 7
OTHER_SUBJECT = 8
INSTRUCTOR = 100
OTHER_INSTRUCTOR = 101
ADMIN = 1000


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemorySessions:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[int, AttendanceSession] = {}
        self._next_id = 1
        self.ledger: Optional["InMemoryLedger"] = None

    def create(self, *, subject_id, owner_id, code, mode, authorized_origin, created_at, expires_at):
        with self._lock:
            if any(s.code == code for s in self._by_id.values()):
                raise DuplicateKeyError("duplicate code", constraint=UQ_SESSION_CODE)
            session = AttendanceSession(
                session_id=self._next_id,
                subject_id=subject_id,
                owner_id=owner_id,
                code=code,
                mode=mode,
                authorized_origin=authorized_origin,
                created_at=created_at,
                expires_at=expires_at,
                active=True,
            )
            self._by_id[session.session_id] = session
            self._next_id += 1
            return session

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        return self._by_id.get(int(session_id))

    def get_by_code(self, code: str) -> Optional[AttendanceSession]:
        return next((s for s in self._by_id.values() if s.code == code), None)

    def deactivate(self, session_id: int) -> bool:
        with self._lock:
            s = self._by_id.get(int(session_id))
            if not s:
                return False
            self._by_id[s.session_id] = replace(s, active=False)
            return True

    def list_active_for_owner(self, owner_id: int, *, now: datetime):
        rows = [s for s in self._by_id.values() if s.owner_id == owner_id and s.is_usable(now)]
        rows.sort(key=lambda s: s.created_at, reverse=True)
        return [
            ActiveSession(session=s, checked_in_count=self.ledger.count_for_session(s.session_id) if self.ledger else 0)
            for s in rows
        ]


class InMemoryLedger:
    """Enforces both unique keys under one lock, the way the database does."""

    def __init__(self, sessions: InMemorySessions):
        self._sessions = sessions
        sessions.ledger = self
        self._lock = threading.Lock()
        self._by_day: dict[tuple[int, date], AttendanceRecord] = {}
        self._next_id = 1
        self.fail_batch_after: Optional[int] = None

    def _claimed(self, session_id, origin) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self._by_day.values() if r.session_id == session_id and r.origin == origin),
            None,
        )

    def records(self) -> list[AttendanceRecord]:
        return list(self._by_day.values())

    def get_for_enrollment_and_date(self, enrollment_id, attendance_date):
        return self._by_day.get((enrollment_id, attendance_date))

    def find_by_session_origin(self, *, session_id, origin):
        return self._claimed(session_id, origin)

    def record_self_checkin(self, *, enrollment_id, attendance_date, marked_by, session_id, origin, now):
        with self._lock:
            session = self._sessions.get_by_id(session_id)
            if session is None or not session.is_usable(now):
                return None
            if self._claimed(session_id, origin) is not None:
                raise DuplicateKeyError("origin claimed", constraint=UQ_SESSION_ORIGIN)
            existing = self._by_day.get((enrollment_id, attendance_date))
            if existing:
                record = replace(
                    existing,
                    status=AttendanceStatus.PRESENT,
                    marked_by=marked_by,
                    session_id=session_id,
                    origin=origin,
                )
            else:
                record = AttendanceRecord(
                    attendance_id=self._next_id,
                    enrollment_id=enrollment_id,
                    attendance_date=attendance_date,
                    status=AttendanceStatus.PRESENT,
                    marked_by=marked_by,
                    session_id=session_id,
                    origin=origin,
                )
                self._next_id += 1
            self._by_day[(enrollment_id, attendance_date)] = record
            return record

    def _upsert(self, *, enrollment_id, attendance_date, status, marked_by, remarks):
        existing = self._by_day.get((enrollment_id, attendance_date))
        if existing:
            record = replace(existing, status=status, marked_by=marked_by, remarks=remarks)
        else:
            record = AttendanceRecord(
                attendance_id=self._next_id,
                enrollment_id=enrollment_id,
                attendance_date=attendance_date,
                status=status,
                marked_by=marked_by,
                remarks=remarks,
            )
            self._next_id += 1
        self._by_day[(enrollment_id, attendance_date)] = record
        return record

    def upsert_mark(self, *, enrollment_id, attendance_date, status, marked_by, remarks=None):
        with self._lock:
            return self._upsert(
                enrollment_id=enrollment_id,
                attendance_date=attendance_date,
                status=status,
                marked_by=marked_by,
                remarks=remarks,
            )

    def upsert_marks(self, marks, *, marked_by):
        with self._lock:
            snapshot = dict(self._by_day)
            for i, m in enumerate(marks):
                if self.fail_batch_after is not None and i >= self.fail_batch_after:
                    self._by_day = snapshot
                    raise StorageUnavailableError("connection lost")
                self._upsert(
                    enrollment_id=m.enrollment_id,
                    attendance_date=m.attendance_date,
                    status=m.status,
                    marked_by=marked_by,
                    remarks=m.remarks,
                )
            return len(marks)

    def count_for_session(self, session_id):
        return sum(1 for r in self._by_day.values() if r.session_id == session_id)


class InMemoryDirectory:
    def __init__(self, enrollments: list[Enrollment], instructors: set[tuple[int, int]]):
        self._by_id = {e.enrollment_id: e for e in enrollments}
        self._instructors = instructors

    def get_active_enrollment(self, *, user_id, subject_id):
        return next(
            (e for e in self._by_id.values() if e.user_id == user_id and e.subject_id == subject_id and e.is_active),
            None,
        )

    def get_enrollment(self, enrollment_id):
        return self._by_id.get(int(enrollment_id))

    def is_instructor_of(self, *, user_id, subject_id):
        return (int(user_id), int(subject_id)) in self._instructors


class RecordingSink:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def notify(self, *, user_id, kind, title, message, related_id=None):
        if self.fail:
            raise RuntimeError("notification backend down")
        self.sent.append({"user_id": user_id, "kind": kind, "title": title, "message": message, "related_id": related_id})


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory(
        [
            Enrollment(enrollment_id=11, user_id=1, subject_id=SUBJECT),
            Enrollment(enrollment_id=12, user_id=2, subject_id=SUBJECT),
            Enrollment(enrollment_id=13, user_id=3, subject_id=SUBJECT),
            Enrollment(enrollment_id=14, user_id=4, subject_id=OTHER_SUBJECT),
            Enrollment(enrollment_id=15, user_id=5, subject_id=SUBJECT, status="dropped"),
        ],
        {(INSTRUCTOR, SUBJECT), (OTHER_INSTRUCTOR, OTHER_SUBJECT)},
    )


@pytest.fixture
def sessions() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def ledger(sessions) -> InMemoryLedger:
    return InMemoryLedger(sessions)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def container(sessions, ledger, directory, sink, clock):
    return wire(
        sessions_repo=sessions,
        attendance_repo=ledger,
        enrollments=directory,
        notifications=sink,
        clock=clock,
    )


@pytest.fixture
def open_session(container):
    """Open a session as the subject's instructor from the classroom network unless told otherwise."""

    def _open(*, mode=SessionMode.WIFI, origin="10.0.0.5", subject_id=SUBJECT, owner_id=INSTRUCTOR, role=Role.INSTRUCTOR, **kwargs):
        return container.session_service.open_session(
            current_role=role,
            owner_id=owner_id,
            subject_id=subject_id,
            caller_origin=origin,
            mode=mode,
            **kwargs,
        )

    return _open
