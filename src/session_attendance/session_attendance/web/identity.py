from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import request, session

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError


@dataclass(frozen=True)
class Caller:
    user_id: int
    role: Role


def current_caller() -> Caller:
    """Identity written into the signed Flask session by the login layer."""

    if "user_id" not in session:
        raise AuthenticationError("Please sign in to continue")
    try:
        return Caller(user_id=int(session["user_id"]), role=Role(session.get("role")))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid session, please sign in again")


def caller_origin() -> str:
    """Network origin of the request as seen after ProxyFix; never taken from the body."""

    return (request.remote_addr or "").strip()


def roles_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if current_caller().role not in roles:
                raise AuthorizationError("You do not have permission for this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator
