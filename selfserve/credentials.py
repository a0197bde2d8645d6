"""Password verification and rotation."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from .base_service import AccountService
from .config import DEFAULT_PASSWORD_MIN_LENGTH
from .database import Database
from .errors import AuthenticationError, InternalError, NotFoundError, ValidationError
from .models import PasswordChangeResult, UserRecord
from .passwords import PasswordHasher


class CredentialService(AccountService):
    """Verify and rotate account passwords."""

    logger_name = "selfserve.credentials"

    def __init__(
        self,
        store: Database,
        hasher: PasswordHasher,
        *,
        min_length: int = DEFAULT_PASSWORD_MIN_LENGTH,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(store, hasher, clock=clock, logger=logger)
        self._min_length = min_length

    @property
    def min_length(self) -> int:
        return self._min_length

    async def change_password(
        self,
        user_id: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> PasswordChangeResult:
        """Replace the password of ``user_id`` after checking the current one.

        Checks run in order and stop at the first failure; the store is
        written exactly once, and only when every check passes. There is no
        concurrency token, so two overlapping changes resolve as
        last-write-wins.
        """

        current_password = current_password or ""
        new_password = new_password or ""

        if not current_password.strip() or not new_password.strip():
            raise ValidationError("Current password and new password are required")

        if len(new_password) < self._min_length:
            raise ValidationError(
                f"New password must be at least {self._min_length} characters long"
            )

        record = await self._call("password lookup", self._store.get_user, user_id)
        if record is None:
            raise NotFoundError("User not found")

        matches = await self._call(
            "password verification", self._hasher.verify, current_password, record.password_hash
        )
        if not matches:
            raise AuthenticationError("Current password is incorrect")

        unchanged = await self._call(
            "password verification", self._hasher.verify, new_password, record.password_hash
        )
        if unchanged:
            raise ValidationError("New password must be different from current password")

        new_hash = await self._call("password hashing", self._hasher.hash, new_password)

        updated = await self._call(
            "password update",
            self._store.update_user,
            user_id,
            password_hash=new_hash,
            updated_at=self._now(),
        )
        if updated is None:
            raise InternalError("Failed to update password")

        self._logger.info("User %s changed their password", user_id)
        return PasswordChangeResult()

    async def authenticate(self, email: Optional[str], password: Optional[str]) -> Optional[UserRecord]:
        """Return the account for ``email`` if ``password`` matches.

        Unknown emails still pay for one hash comparison. A successful
        login upgrades hashes made with a lower cost than configured.
        """

        cleaned_email = (email or "").strip()
        password = password or ""

        record = None
        if cleaned_email:
            record = await self._call("login lookup", self._store.get_user_by_email, cleaned_email)

        if record is None or not password:
            await self._call("password verification", self._hasher.dummy_verify)
            return None

        matches = await self._call(
            "password verification", self._hasher.verify, password, record.password_hash
        )
        if not matches:
            return None

        if self._hasher.needs_update(record.password_hash):
            record = await self._rehash(record, password)
        return record

    async def _rehash(self, record: UserRecord, password: str) -> UserRecord:
        try:
            new_hash = await self._call("password hashing", self._hasher.hash, password)
            updated = await self._call(
                "password rehash",
                self._store.update_user,
                record.id,
                password_hash=new_hash,
                updated_at=self._now(),
            )
        except InternalError:
            self._logger.warning("Keeping outdated password hash for user %s", record.id)
            return record

        if updated is None:
            return record
        self._logger.info("Upgraded password hash for user %s", record.id)
        return updated


__all__ = ["CredentialService"]
