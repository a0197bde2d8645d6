"""Password hashing built on passlib's bcrypt handler."""
from __future__ import annotations

from typing import Optional

from passlib.context import CryptContext

from .config import DEFAULT_BCRYPT_ROUNDS


class PasswordHasher:
    """Salted, deliberately slow password hashing with timing-safe checks.

    ``rounds`` is the bcrypt cost factor (log2 of the iteration count).
    Hashes produced with a lower cost are reported by :meth:`needs_update`
    so callers can upgrade them after a successful login.
    """

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__default_rounds=rounds,
            bcrypt__min_rounds=rounds,
        )

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        return self._context.hash(password)

    def verify(self, password: str, hashed: Optional[str]) -> bool:
        if not hashed:
            # Keep the timing of a real comparison when no hash is stored.
            self._context.dummy_verify()
            return False
        try:
            return self._context.verify(password, hashed)
        except (TypeError, ValueError):
            self._context.dummy_verify()
            return False

    def dummy_verify(self) -> None:
        self._context.dummy_verify()

    def needs_update(self, hashed: str) -> bool:
        try:
            return self._context.needs_update(hashed)
        except (TypeError, ValueError):
            return True


__all__ = ["PasswordHasher"]
