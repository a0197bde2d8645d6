"""Error kinds surfaced by the account services."""
from __future__ import annotations


class AccountError(RuntimeError):
    """Base class for user-facing account errors.

    The message is safe to show to the caller; ``status_code`` is the HTTP
    status the request layer responds with.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    """Raised when input is missing, malformed, or too weak."""

    status_code = 400


class AuthenticationError(AccountError):
    """Raised when the current password does not match."""

    status_code = 400


class ConflictError(AccountError):
    """Raised when an email address belongs to another account."""

    status_code = 409


class NotFoundError(AccountError):
    status_code = 404


class InternalError(AccountError):
    """Raised for unexpected store or hasher failures."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


__all__ = [
    "AccountError",
    "AuthenticationError",
    "ConflictError",
    "InternalError",
    "NotFoundError",
    "ValidationError",
]
