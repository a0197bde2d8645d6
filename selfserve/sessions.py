"""Browser sign-in sessions for the account pages."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

SESSION_COOKIE_NAME = "selfserve_session"


@dataclass
class _Session:
    user_id: str
    expires_at: datetime


class SessionManager:
    """Map opaque cookie tokens to account ids.

    Expiry slides forward on every successful :meth:`resolve`. Expired
    entries are dropped when they are next looked up and swept whenever a
    new session is issued, so abandoned sessions do not accumulate.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(hours=8),
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("Session lifetime must be positive")
        self._ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sessions: Dict[str, _Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def cookie_max_age(self) -> int:
        return int(self._ttl.total_seconds())

    def create(self, user_id: str) -> str:
        now = self._clock()
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sweep(now)
            self._sessions[token] = _Session(user_id=user_id, expires_at=now + self._ttl)
        return token

    def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= now:
                del self._sessions[token]
                return None
            session.expires_at = now + self._ttl
            return session.user_id

    def destroy(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def revoke_user(self, user_id: str, *, keep: Optional[str] = None) -> int:
        """Drop every session of ``user_id`` except ``keep``; return how many went."""

        with self._lock:
            doomed = [
                token
                for token, session in self._sessions.items()
                if session.user_id == user_id and token != keep
            ]
            for token in doomed:
                del self._sessions[token]
        return len(doomed)

    def _sweep(self, now: datetime) -> None:
        expired = [token for token, session in self._sessions.items() if session.expires_at <= now]
        for token in expired:
            del self._sessions[token]


__all__ = ["SESSION_COOKIE_NAME", "SessionManager"]
