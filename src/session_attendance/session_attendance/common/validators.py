from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if n <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return n


def optional_text(value: Optional[str], *, max_len: int = 255) -> Optional[str]:
    v = str(value).strip() if value is not None else ""
    if not v:
        return None
    if len(v) > max_len:
        raise ValidationError(f"Text too long (max {max_len} characters)")
    return v
