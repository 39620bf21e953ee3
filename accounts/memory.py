"""In-memory user repository used by tests and the ``memory`` backend."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from .models import User
from .passwords import PasswordHasher
from .repository import (
    DuplicateEmailError,
    DuplicateUsernameError,
    RepositoryError,
    UserNotFoundError,
    UserRepository,
)

logger = logging.getLogger("accounts.memory")


class InMemoryUserRepository(UserRepository):
    """Lock-protected repository keeping users and their unique keys in dicts."""

    def __init__(self, *, hasher: Optional[PasswordHasher] = None) -> None:
        super().__init__(hasher=hasher)
        self._lock = threading.Lock()
        self._last_id = 0
        self._users: Dict[int, User] = {}
        # Unique keys map to the owning user id.
        self._emails: Dict[str, int] = {}
        self._usernames: Dict[str, int] = {}
        self._closed = False

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._users.clear()
            self._emails.clear()
            self._usernames.clear()

    def create(self, user: User) -> int:
        with self._lock:
            self._ensure_open()
            if user.email in self._emails:
                raise DuplicateEmailError()
            if user.username in self._usernames:
                raise DuplicateUsernameError()

            self._last_id += 1
            user.id = self._last_id
            self._store(user.copy())

        logger.info("Created user %s", user.id)
        return user.id

    def get(self, user_id: int) -> User:
        with self._lock:
            self._ensure_open()
            return self._lookup(user_id).copy()

    def get_by_email(self, email: str) -> User:
        with self._lock:
            self._ensure_open()
            return self._lookup(self._emails.get(email)).copy()

    def get_by_username(self, username: str) -> User:
        with self._lock:
            self._ensure_open()
            return self._lookup(self._usernames.get(username)).copy()

    def update(self, user: User) -> None:
        with self._lock:
            self._ensure_open()
            old = self._lookup(user.id)

            owner = self._emails.get(user.email)
            if owner is not None and owner != old.id:
                raise DuplicateEmailError()
            owner = self._usernames.get(user.username)
            if owner is not None and owner != old.id:
                raise DuplicateUsernameError()

            del self._emails[old.email]
            del self._usernames[old.username]
            self._store(user.copy())

    def delete(self, user_id: int) -> None:
        with self._lock:
            self._ensure_open()
            user = self._lookup(user_id)
            del self._users[user.id]
            del self._emails[user.email]
            del self._usernames[user.username]

        logger.info("Deleted user %s", user_id)

    # ------------------------------------------------------------------
    # Internal helpers, called with the lock held
    # ------------------------------------------------------------------
    def _ensure_open(self) -> None:
        if self._closed:
            raise RepositoryError("user repository is closed")

    def _lookup(self, user_id: Optional[int]) -> User:
        user = self._users.get(user_id) if user_id is not None else None
        if user is None:
            raise UserNotFoundError()
        return user

    def _store(self, user: User) -> None:
        self._users[user.id] = user
        self._emails[user.email] = user.id
        self._usernames[user.username] = user.id


__all__ = ["InMemoryUserRepository"]
