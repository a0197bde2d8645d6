"""Domain models for self-service account management."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple


DEFAULT_ROLE = "user"


def split_name(name: str) -> Tuple[str, str]:
    """Split a combined display name into first and last name.

    The store keeps a single ``name`` column. Only the first two
    space-separated tokens survive the round trip, so ``"Mary Ann Smith"``
    comes back as ``("Mary", "Ann")``.
    """

    parts = (name or "").split(" ")
    first = parts[0] if len(parts) > 0 else ""
    last = parts[1] if len(parts) > 1 else ""
    return first, last


def join_name(first_name: str, last_name: str) -> str:
    return f"{first_name.strip()} {last_name.strip()}"


@dataclass(frozen=True)
class UserRecord:
    """Represents a user account stored in the account database."""

    id: str
    name: str
    email: str
    password_hash: str
    role: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ProfileView:
    """Read-only projection of a user record, without credentials."""

    id: str
    email: str
    name: str
    role: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> "ProfileView":
        return cls(
            id=record.id,
            email=record.email,
            name=record.name,
            role=record.role,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @property
    def first_name(self) -> str:
        return split_name(self.name)[0]

    @property
    def last_name(self) -> str:
        return split_name(self.name)[1]


@dataclass(frozen=True)
class PasswordChangeResult:
    message: str = "Password updated successfully"


__all__ = [
    "DEFAULT_ROLE",
    "PasswordChangeResult",
    "ProfileView",
    "UserRecord",
    "join_name",
    "split_name",
]
