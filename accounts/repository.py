"""Repository contract and error taxonomy for stored user accounts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Optional, Type

from .models import User
from .passwords import PasswordHasher


class AccountError(Exception):
    """Base class for every error raised by the account subsystem."""


class RepositoryError(AccountError):
    """Raised when the backing store is unavailable or fails unexpectedly."""


class UserNotFoundError(AccountError):
    def __init__(self, message: str = "user not found") -> None:
        super().__init__(message)


class DuplicateKeyError(AccountError):
    """A uniqueness constraint on a user field was violated."""


class DuplicateEmailError(DuplicateKeyError):
    def __init__(self, message: str = "a user with that email already exists") -> None:
        super().__init__(message)


class DuplicateUsernameError(DuplicateKeyError):
    def __init__(self, message: str = "a user with that username already exists") -> None:
        super().__init__(message)


class WrongPasswordError(AccountError):
    def __init__(self, message: str = "incorrect password") -> None:
        super().__init__(message)


class UserRepository(ABC):
    """Storage contract for :class:`~accounts.models.User` records.

    Every read returns a copy of the stored record. ``create`` assigns the id
    on the record it is given and returns it as well.
    """

    def __init__(self, *, hasher: Optional[PasswordHasher] = None) -> None:
        self._hasher = hasher if hasher is not None else PasswordHasher()

    @property
    def hasher(self) -> PasswordHasher:
        return self._hasher

    @abstractmethod
    def create(self, user: User) -> int:
        """Store a new user, raising a duplicate error if email or username is taken."""

    @abstractmethod
    def get(self, user_id: int) -> User:
        ...

    @abstractmethod
    def get_by_email(self, email: str) -> User:
        ...

    @abstractmethod
    def get_by_username(self, username: str) -> User:
        ...

    @abstractmethod
    def update(self, user: User) -> None:
        """Replace every field of the stored record with the same id."""

    @abstractmethod
    def delete(self, user_id: int) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the backend; later calls raise :class:`RepositoryError`."""

    def authenticate(self, email: str, password: str) -> User:
        user = self.get_by_email(email)
        if not self._hasher.matches(user.password, password):
            raise WrongPasswordError()
        return user

    def __enter__(self) -> "UserRepository":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()


__all__ = [
    "AccountError",
    "DuplicateEmailError",
    "DuplicateKeyError",
    "DuplicateUsernameError",
    "RepositoryError",
    "UserNotFoundError",
    "UserRepository",
    "WrongPasswordError",
]
