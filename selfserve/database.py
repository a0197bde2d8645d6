"""SQLite-backed persistence for user accounts."""
from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .config import resolve_database_path
from .models import DEFAULT_ROLE, UserRecord


class DuplicateEmailError(ValueError):
    """Raised when a write would give two accounts the same email."""

    def __init__(self, email: str) -> None:
        super().__init__("A user with that email already exists")
        self.email = email


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _generate_user_id() -> str:
    return uuid.uuid4().hex


class Database:
    """Simple wrapper around SQLite for persisting user accounts."""

    _UPDATABLE_COLUMNS = ("name", "email", "password_hash", "updated_at")

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'user',
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                );
                """
            )

            columns = {
                row["name"]
                for row in conn.execute("PRAGMA table_info(users)").fetchall()
            }
            if "role" not in columns:
                conn.execute("ALTER TABLE users ADD COLUMN role TEXT NOT NULL DEFAULT 'user'")
            if "updated_at" not in columns:
                conn.execute("ALTER TABLE users ADD COLUMN updated_at TEXT")
            conn.execute("UPDATE users SET updated_at = created_at WHERE updated_at IS NULL")

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        *,
        role: str = DEFAULT_ROLE,
    ) -> UserRecord:
        """Insert a new account. ``password_hash`` must already be hashed."""

        normalized_name = name.strip()
        normalized_email = email.strip()
        if not normalized_name:
            raise ValueError("Name must not be empty")
        if not normalized_email:
            raise ValueError("Email must not be empty")
        if not password_hash:
            raise ValueError("Password hash must not be empty")

        user_id = _generate_user_id()
        created_at = _current_timestamp()
        serialized = _serialize_datetime(created_at)

        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO users (id, name, email, password_hash, role, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, normalized_name, normalized_email, password_hash, role, serialized, serialized),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateEmailError(normalized_email) from exc

        return UserRecord(
            id=user_id,
            name=normalized_name,
            email=normalized_email,
            password_hash=password_hash,
            role=role,
            created_at=created_at,
            updated_at=created_at,
        )

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> List[UserRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY created_at").fetchall()
        return [self._row_to_user(row) for row in rows]

    def update_user(self, user_id: str, **fields: object) -> Optional[UserRecord]:
        """Apply a partial update and return the post-write record.

        Returns ``None`` when no account matches ``user_id``.
        """

        unknown = set(fields) - set(self._UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update column(s): {', '.join(sorted(unknown))}")

        updates: List[str] = []
        values: List[object] = []
        for column in self._UPDATABLE_COLUMNS:
            if column not in fields:
                continue
            value = fields[column]
            if value is None:
                continue
            if isinstance(value, datetime):
                value = _serialize_datetime(value)
            updates.append(f"{column} = ?")
            values.append(value)

        if not updates:
            return self.get_user(user_id)

        values.append(user_id)
        query = f"UPDATE users SET {', '.join(updates)} WHERE id = ?"

        with self._connect() as conn:
            try:
                cursor = conn.execute(query, values)
            except sqlite3.IntegrityError as exc:
                raise DuplicateEmailError(str(fields.get("email", ""))) from exc
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

        if row is None:
            return None
        return self._row_to_user(row)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> UserRecord:
        created_at = _parse_datetime(str(row["created_at"]))
        updated_raw = row["updated_at"]
        return UserRecord(
            id=str(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
            role=str(row["role"]),
            created_at=created_at,
            updated_at=_parse_datetime(str(updated_raw)) if updated_raw else created_at,
        )


__all__ = ["Database", "DuplicateEmailError", "resolve_database_path"]
