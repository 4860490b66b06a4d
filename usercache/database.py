"""SQLite-backed persistence for user records."""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional

from .models import User

MINIMUM_AGE = 18


class UserStoreError(Exception):
    """Base class for failures raised by :class:`Database`."""


class UserValidationError(UserStoreError, ValueError):
    """Raised when a record breaks a business rule such as the age gate."""


class DuplicateUserError(UserStoreError, ValueError):
    """Raised when a record with the same email address already exists."""


class StorageError(UserStoreError):
    """Raised when the underlying SQLite query fails."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


def _duplicate_message(email: str) -> str:
    return f"user with the {email} email already exists"


class Database:
    """Simple wrapper around SQLite for persisting user records."""

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
        """Create the ``users`` table if it does not already exist."""

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        email TEXT PRIMARY KEY,
                        password TEXT,
                        name TEXT,
                        age INTEGER
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to initialise database at {self._path}: {exc}") from exc

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, user: User) -> None:
        """Persist ``user`` after the uniqueness and age checks pass."""

        if not user.email:
            raise UserValidationError("email must not be empty")

        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS total FROM users WHERE email = ?",
                    (user.email,),
                ).fetchone()
                if int(row["total"]) > 0:
                    raise DuplicateUserError(_duplicate_message(user.email))

                if user.age < MINIMUM_AGE:
                    raise UserValidationError(f"user must be at least {MINIMUM_AGE} years old")

                conn.execute(
                    """
                    INSERT INTO users (email, password, name, age)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user.email, user.password, user.name, user.age),
                )
        except sqlite3.IntegrityError as exc:
            # Another writer inserted the same email between the check and the insert.
            raise DuplicateUserError(_duplicate_message(user.email)) from exc
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    def get_all_users(self) -> List[User]:
        """Return every stored user in table scan order."""

        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT email, password, name, age FROM users").fetchall()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return [self._row_to_user(row) for row in rows]

    def count_users(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return int(row["total"])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            email=str(row["email"]),
            password=str(row["password"]) if row["password"] is not None else "",
            name=str(row["name"]) if row["name"] is not None else "",
            age=int(row["age"]) if row["age"] is not None else 0,
        )


__all__ = [
    "Database",
    "DuplicateUserError",
    "MINIMUM_AGE",
    "StorageError",
    "UserStoreError",
    "UserValidationError",
    "resolve_database_path",
]
