from __future__ import annotations

import string
from types import SimpleNamespace

import pytest

from session_attendance.container import wire
from session_attendance.core.enums import Role, SessionMode
from session_attendance.sessions.codes import CODE_ALPHABET, CodeGenerator, normalize_code


def test_wifi_codes_are_short_and_unambiguous():
    gen = CodeGenerator()
    for _ in range(200):
        code = gen.generate(SessionMode.WIFI)
        assert len(code) == 6
        assert set(code) <= set(CODE_ALPHABET)
        assert not set(code) & set("0O1IL")


def test_qr_tokens_are_32_uppercase_hex_chars():
    code = CodeGenerator().generate(SessionMode.QR)
    assert len(code) == 32
    assert set(code) <= set(string.hexdigits.upper())


def test_code_length_is_configurable():
    assert len(CodeGenerator(code_length=8).generate(SessionMode.WIFI)) == 8


def test_normalize_code():
    assert normalize_code("  ab3xyz ") == "AB3XYZ"
    assert normalize_code("0123456789abcdef0123456789abcdef") == "0123456789ABCDEF0123456789ABCDEF"
    assert normalize_code("abcdefghjkmnp") == "ABCDEFGHJKMNP"
    assert normalize_code("") == ""
    assert normalize_code(None) == ""


@pytest.mark.parametrize("length", [6, 13, 20])
def test_configured_code_length_still_checks_in(sessions, ledger, directory, sink, clock, length):
    container = wire(
        sessions_repo=sessions,
        attendance_repo=ledger,
        enrollments=directory,
        notifications=sink,
        settings=SimpleNamespace(SESSION_CODE_LENGTH=length),
        clock=clock,
    )
    s = container.session_service.open_session(
        current_role=Role.INSTRUCTOR, owner_id=100, subject_id=7, caller_origin="10.0.0.5"
    )

    assert len(s.code) == length
    assert container.session_service.lookup(s.code.lower()) == s
    assert container.check_in_verifier.attempt(code=s.code, user_id=1, origin="10.0.0.5").ok


def test_qr_token_typed_in_lowercase_is_found(container, open_session):
    s = open_session(mode=SessionMode.QR)

    result = container.check_in_verifier.attempt(code=s.code.lower(), user_id=1, origin="10.0.0.77")

    assert result.ok
    assert result.record.session_id == s.session_id
