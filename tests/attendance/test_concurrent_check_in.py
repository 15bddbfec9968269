from __future__ import annotations

import threading

import pytest

from session_attendance.core.enums import AttendanceStatus, CheckInError, Role, SessionMode


@pytest.fixture
def racing(container, monkeypatch):
    """Hold every attempt after the device pre-check until all have passed it."""

    def _install(parties: int):
        barrier = threading.Barrier(parties, timeout=5)
        original = container.attendance_repo.find_by_session_origin

        def find_then_wait(**kwargs):
            found = original(**kwargs)
            barrier.wait()
            return found

        monkeypatch.setattr(container.attendance_repo, "find_by_session_origin", find_then_wait)

    return _install


def _run_concurrently(verifier, attempts):
    results = [None] * len(attempts)

    def worker(i, kwargs):
        results[i] = verifier.attempt(**kwargs)

    threads = [threading.Thread(target=worker, args=(i, a)) for i, a in enumerate(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results


def test_two_students_racing_on_one_origin_only_one_wins(container, open_session, racing):
    s = open_session()
    racing(2)

    results = _run_concurrently(
        container.check_in_verifier,
        [
            {"code": s.code, "user_id": 1, "origin": "10.0.0.5"},
            {"code": s.code, "user_id": 2, "origin": "10.0.0.5"},
        ],
    )

    assert sum(r.ok for r in results) == 1
    assert [r.error for r in results if not r.ok] == [CheckInError.DEVICE_ALREADY_USED]
    assert container.attendance_repo.count_for_session(s.session_id) == 1


def test_one_student_double_submitting_gets_one_record(container, open_session, racing):
    s = open_session()
    racing(2)

    results = _run_concurrently(
        container.check_in_verifier,
        [{"code": s.code, "user_id": 1, "origin": "10.0.0.5"}] * 2,
    )

    assert sum(r.ok for r in results) == 1
    assert len(container.attendance_repo.records()) == 1


def test_distinct_origins_succeed_concurrently(container, open_session, racing):
    s = open_session(mode=SessionMode.QR)
    racing(3)

    results = _run_concurrently(
        container.check_in_verifier,
        [
            {"code": s.code, "user_id": 1, "origin": "10.0.0.5"},
            {"code": s.code, "user_id": 2, "origin": "10.0.0.9"},
            {"code": s.code, "user_id": 3, "origin": "10.0.0.12"},
        ],
    )

    assert all(r.ok for r in results)
    assert container.attendance_repo.count_for_session(s.session_id) == 3


def test_check_in_racing_a_manual_override_keeps_one_row_last_writer_wins(container, open_session, fixed_now, monkeypatch):
    s = open_session()
    ledger = container.attendance_repo
    barrier = threading.Barrier(2, timeout=5)
    write_lock = threading.Lock()
    committed: list[str] = []

    def ordered(name, original):
        # Both writers reach the store together; the lock fixes and records commit order.
        def write(*args, **kwargs):
            barrier.wait()
            with write_lock:
                result = original(*args, **kwargs)
                committed.append(name)
                return result

        return write

    monkeypatch.setattr(ledger, "record_self_checkin", ordered("check_in", ledger.record_self_checkin))
    monkeypatch.setattr(ledger, "upsert_mark", ordered("manual", ledger.upsert_mark))

    results = {}

    def check_in():
        results["check_in"] = container.check_in_verifier.attempt(code=s.code, user_id=1, origin="10.0.0.5")

    def override():
        results["manual"] = container.marking_service.mark_manual(
            current_role=Role.INSTRUCTOR,
            marker_id=100,
            enrollment_id=11,
            attendance_date=fixed_now.date(),
            status="absent",
        )

    threads = [threading.Thread(target=check_in), threading.Thread(target=override)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert results["check_in"].ok
    assert sorted(committed) == ["check_in", "manual"]

    records = ledger.records()
    assert len(records) == 1
    expected = AttendanceStatus.PRESENT if committed[-1] == "check_in" else AttendanceStatus.ABSENT
    assert records[0].status == expected
    assert records[0].enrollment_id == 11
