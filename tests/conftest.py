from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from selfserve.database import Database
from selfserve.models import UserRecord
from selfserve.passwords import PasswordHasher

# Lowest cost bcrypt accepts; keeps the suite fast.
TEST_ROUNDS = 4


class RecordingStore:
    """Wraps a real database and records every write."""

    def __init__(self, database: Database) -> None:
        self._database = database
        self.updates: List[Tuple[str, dict]] = []

    def get_user(self, user_id: str):
        return self._database.get_user(user_id)

    def get_user_by_email(self, email: str):
        return self._database.get_user_by_email(email)

    def update_user(self, user_id: str, **fields: object):
        self.updates.append((user_id, dict(fields)))
        return self._database.update_user(user_id, **fields)


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "accounts.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture()
def store(database: Database) -> RecordingStore:
    return RecordingStore(database)


@pytest.fixture()
def make_user(database: Database, hasher: PasswordHasher):
    def _make_user(name: str, email: str, password: str = "oldpass123") -> UserRecord:
        return database.create_user(name, email, hasher.hash(password))

    return _make_user
