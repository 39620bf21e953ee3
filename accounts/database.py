"""SQLite-backed persistence for user accounts."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .models import User
from .passwords import PasswordHasher
from .repository import (
    DuplicateEmailError,
    DuplicateUsernameError,
    RepositoryError,
    UserNotFoundError,
    UserRepository,
)

logger = logging.getLogger("accounts.database")

CREATE_USERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    username TEXT UNIQUE NOT NULL,
    password TEXT NOT NULL
);
"""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the accounts database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "accounts.sqlite3").resolve(strict=False)


class SQLiteUserRepository(UserRepository):
    """User repository stored in a single SQLite ``users`` table.

    Uniqueness is enforced by the table's constraints. When SQLite rejects a
    write, a follow-up query works out which field collided so callers get
    the same duplicate errors as from the in-memory repository. That query
    runs after the failed statement, so under concurrent writers it can only
    classify the conflict, never prevent it.
    """

    def __init__(self, path: Path, *, hasher: Optional[PasswordHasher] = None) -> None:
        super().__init__(hasher=hasher)
        _ensure_directory(path)
        self._path = path
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """Create the users table if it does not already exist."""

        with self._transaction() as conn:
            conn.executescript(CREATE_USERS_TABLE_SQL)

    def close(self) -> None:
        self._closed = True

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        if self._closed:
            raise RepositoryError("user repository is closed")
        try:
            with closing(sqlite3.connect(self._path, check_same_thread=False)) as conn:
                conn.row_factory = sqlite3.Row
                with conn:
                    yield conn
        except sqlite3.Error as exc:
            logger.error("SQLite error on %s: %s", self._path, exc)
            raise RepositoryError(f"user database failure: {exc}") from exc

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create(self, user: User) -> int:
        with self._transaction() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (email, username, password) VALUES (?, ?, ?)",
                    (user.email, user.username, user.password),
                )
            except sqlite3.IntegrityError as exc:
                raise self._classify_conflict(conn, user, exc, exclude_id=None) from exc
            user_id = int(cursor.lastrowid)

        user.id = user_id
        logger.info("Created user %s", user_id)
        return user_id

    def get(self, user_id: int) -> User:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", user_id)

    def get_by_email(self, email: str) -> User:
        return self._fetch_one("SELECT * FROM users WHERE email = ?", email)

    def get_by_username(self, username: str) -> User:
        return self._fetch_one("SELECT * FROM users WHERE username = ?", username)

    def update(self, user: User) -> None:
        with self._transaction() as conn:
            try:
                cursor = conn.execute(
                    "UPDATE users SET email = ?, username = ?, password = ? WHERE id = ?",
                    (user.email, user.username, user.password, user.id),
                )
            except sqlite3.IntegrityError as exc:
                raise self._classify_conflict(conn, user, exc, exclude_id=user.id) from exc
            if cursor.rowcount == 0:
                raise UserNotFoundError()

    def delete(self, user_id: int) -> None:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            if cursor.rowcount != 1:
                raise UserNotFoundError()

        logger.info("Deleted user %s", user_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _fetch_one(self, query: str, value: object) -> User:
        with self._transaction() as conn:
            row = conn.execute(query, (value,)).fetchone()
        if row is None:
            raise UserNotFoundError()
        return self._row_to_user(row)

    def _classify_conflict(
        self,
        conn: sqlite3.Connection,
        user: User,
        exc: sqlite3.IntegrityError,
        *,
        exclude_id: Optional[int],
    ) -> Exception:
        """Map a unique constraint failure to the field that collided.

        ``exclude_id`` is the row being updated, which may keep its own values.
        """

        if self._owned_by_other(conn, "email", user.email, exclude_id):
            return DuplicateEmailError()
        if self._owned_by_other(conn, "username", user.username, exclude_id):
            return DuplicateUsernameError()
        # The conflicting row vanished before it could be identified.
        logger.warning("Unclassified constraint failure for user %s: %s", user.id, exc)
        return RepositoryError(f"user database constraint failure: {exc}")

    @staticmethod
    def _owned_by_other(
        conn: sqlite3.Connection, column: str, value: str, exclude_id: Optional[int]
    ) -> bool:
        row = conn.execute(f"SELECT id FROM users WHERE {column} = ?", (value,)).fetchone()
        if row is None:
            return False
        return exclude_id is None or int(row["id"]) != exclude_id

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            email=str(row["email"]),
            username=str(row["username"]),
            password=str(row["password"]),
        )


__all__ = [
    "CREATE_USERS_TABLE_SQL",
    "SQLiteUserRepository",
    "resolve_database_path",
]
