from __future__ import annotations

import secrets
from dataclasses import dataclass

from ..core.constants import DEFAULT_CODE_LENGTH, QR_TOKEN_BYTES
from ..core.enums import SessionMode

# Uppercase letters and digits minus the look-alikes 0/O and 1/I/L.
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


@dataclass
class CodeGenerator:
    """Short codes for sessions read aloud in class, long tokens for QR sessions."""

    code_length: int = DEFAULT_CODE_LENGTH
    token_bytes: int = QR_TOKEN_BYTES

    def generate(self, mode: SessionMode) -> str:
        if mode == SessionMode.QR:
            return secrets.token_hex(self.token_bytes).upper()
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(self.code_length))


def normalize_code(raw: str) -> str:
    """Codes and QR tokens are both stored uppercase; input case does not matter."""

    return (raw or "").strip().upper()
