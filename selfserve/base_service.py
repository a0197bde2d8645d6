"""Shared plumbing for the account services."""
from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

import anyio

from .database import Database
from .errors import AccountError, InternalError
from .passwords import PasswordHasher

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountService:
    """Base class holding the store, hasher and error boundary.

    Store and hasher calls are blocking (SQLite, bcrypt) and run on a worker
    thread so a slow hash never stalls the event loop.
    """

    logger_name = "selfserve.services"

    def __init__(
        self,
        store: Database,
        hasher: PasswordHasher,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._clock = clock or _utcnow
        self._logger = logger or logging.getLogger(self.logger_name)

    def _now(self) -> datetime:
        return self._clock()

    async def _call(self, operation: str, func: Callable[..., T], *args: object, **kwargs: object) -> T:
        """Run a blocking collaborator call, mapping unexpected failures.

        :class:`AccountError` subclasses pass through untouched. Anything
        else is logged and replaced by a generic :class:`InternalError`.
        """

        try:
            return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))
        except AccountError:
            raise
        except Exception as exc:
            self._logger.exception("Unexpected failure during %s", operation)
            raise InternalError() from exc


__all__ = ["AccountService"]
