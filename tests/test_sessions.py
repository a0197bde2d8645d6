from datetime import datetime, timedelta, timezone

import pytest

from selfserve.sessions import SessionManager


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2030, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sessions(clock: FakeClock) -> SessionManager:
    return SessionManager(ttl=timedelta(hours=1), clock=clock)


def test_resolve_returns_user_for_issued_token(sessions: SessionManager) -> None:
    token = sessions.create("user-1")

    assert sessions.resolve(token) == "user-1"
    assert sessions.resolve("unknown") is None
    assert sessions.resolve(None) is None
    assert sessions.cookie_max_age == 3600


def test_expiry_slides_on_use(sessions: SessionManager, clock: FakeClock) -> None:
    token = sessions.create("user-1")

    clock.advance(minutes=50)
    assert sessions.resolve(token) == "user-1"
    clock.advance(minutes=50)
    assert sessions.resolve(token) == "user-1"

    clock.advance(hours=1)
    assert sessions.resolve(token) is None
    assert len(sessions) == 0


def test_create_sweeps_expired_sessions(sessions: SessionManager, clock: FakeClock) -> None:
    for index in range(5):
        sessions.create(f"user-{index}")
    assert len(sessions) == 5

    clock.advance(hours=2)
    fresh = sessions.create("user-new")

    assert len(sessions) == 1
    assert sessions.resolve(fresh) == "user-new"


def test_destroy_removes_token(sessions: SessionManager) -> None:
    token = sessions.create("user-1")

    sessions.destroy(token)
    sessions.destroy(None)

    assert sessions.resolve(token) is None


def test_revoke_user_keeps_only_the_current_session(sessions: SessionManager) -> None:
    current = sessions.create("user-1")
    stale = sessions.create("user-1")
    other_user = sessions.create("user-2")

    assert sessions.revoke_user("user-1", keep=current) == 1

    assert sessions.resolve(current) == "user-1"
    assert sessions.resolve(stale) is None
    assert sessions.resolve(other_user) == "user-2"


def test_non_positive_lifetime_rejected() -> None:
    with pytest.raises(ValueError):
        SessionManager(ttl=timedelta(0))
