from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when the request carries no caller identity."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced session or enrollment does not exist for the caller."""


class StorageError(Exception):
    """Base exception for infrastructure failures in the storage layer."""


class StorageUnavailableError(StorageError):
    """Database could not be reached or the statement failed transiently; safe to retry."""


class DuplicateKeyError(StorageError):
    """A unique constraint rejected the write."""

    def __init__(self, message: str, *, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint
