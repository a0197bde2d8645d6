"""Profile reads and updates for the signed-in user."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from .base_service import AccountService
from .database import DuplicateEmailError
from .errors import ConflictError, InternalError, NotFoundError, ValidationError
from .models import ProfileView, UserRecord, join_name, split_name

# Deliberately loose: something@something.something, no whitespace.
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.search(value or ""))


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class ProfileService(AccountService):
    """Read and update the display name and email of an account."""

    logger_name = "selfserve.profiles"

    async def get_profile(self, user_id: str) -> ProfileView:
        record = await self._call("profile lookup", self._store.get_user, user_id)
        if record is None:
            raise NotFoundError("User not found")
        return ProfileView.from_record(record)

    async def update_profile(
        self,
        user_id: str,
        *,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
    ) -> ProfileView:
        """Replace the display name and email for ``user_id``.

        The email availability check and the write are separate store calls.
        Two concurrent updates to the same address can both pass the check;
        a store that enforces uniqueness turns the loser into a
        :class:`ConflictError`, otherwise both writes land.
        """

        cleaned_first = _clean(first_name)
        cleaned_last = _clean(last_name)
        cleaned_email = _clean(email)

        if not cleaned_first or not cleaned_last or not cleaned_email:
            raise ValidationError("First name, last name, and email are required")

        if not is_valid_email(cleaned_email):
            raise ValidationError("Invalid email format")

        existing = await self._call("email lookup", self._store.get_user_by_email, cleaned_email)
        if existing is not None and existing.id != user_id:
            raise ConflictError("Email is already taken")

        updated = await self._call(
            "profile update",
            self._write_profile,
            user_id,
            join_name(cleaned_first, cleaned_last),
            cleaned_email,
            self._now(),
        )
        if updated is None:
            raise InternalError("Failed to update profile")

        self._logger.info("User %s updated their profile", user_id)
        return ProfileView.from_record(updated)

    def _write_profile(
        self,
        user_id: str,
        name: str,
        email: str,
        updated_at: datetime,
    ) -> Optional[UserRecord]:
        try:
            return self._store.update_user(user_id, name=name, email=email, updated_at=updated_at)
        except DuplicateEmailError as exc:
            raise ConflictError("Email is already taken") from exc


__all__ = ["EMAIL_PATTERN", "ProfileService", "is_valid_email", "split_name"]
