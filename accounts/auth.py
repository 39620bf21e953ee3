"""Field validation, password hashing and authentication for user accounts."""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import User
from .passwords import PasswordHasher
from .repository import AccountError, UserRepository, WrongPasswordError

logger = logging.getLogger("accounts.auth")

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,6}")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 25
PASSWORD_MIN_LENGTH = 6


class ValidationError(AccountError):
    """Base class for user fields that fail validation."""


class EmptyRequiredFieldError(ValidationError):
    def __init__(self, message: str = "required field is empty") -> None:
        super().__init__(message)


class InvalidEmailError(ValidationError):
    def __init__(self, message: str = "email is invalid") -> None:
        super().__init__(message)


class InvalidUsernameError(ValidationError):
    def __init__(
        self, message: str = "username is invalid (can only contain numbers and letters)"
    ) -> None:
        super().__init__(message)


class InvalidUsernameLengthError(ValidationError):
    def __init__(
        self,
        message: str = f"username must be between {USERNAME_MIN_LENGTH} - {USERNAME_MAX_LENGTH} characters",
    ) -> None:
        super().__init__(message)


class PasswordTooShortError(ValidationError):
    def __init__(
        self,
        message: str = f"password is too short (must be at least {PASSWORD_MIN_LENGTH} characters)",
    ) -> None:
        super().__init__(message)


_VALIDATION_ERRORS = (
    EmptyRequiredFieldError,
    InvalidEmailError,
    InvalidUsernameError,
    InvalidUsernameLengthError,
    PasswordTooShortError,
)


def is_validation_error(err: BaseException) -> bool:
    """Return ``True`` if ``err`` is one of the five user validation errors."""

    return isinstance(err, _VALIDATION_ERRORS)


def _is_alphanumeric(value: str) -> bool:
    return all(char.isalpha() or char.isnumeric() for char in value)


class AuthService:
    """Validate, hash and authenticate users stored in a repository."""

    def __init__(
        self,
        repository: UserRepository,
        *,
        hasher: Optional[PasswordHasher] = None,
    ) -> None:
        self._repository = repository
        if hasher is None:
            hasher = repository.hasher if repository is not None else PasswordHasher()
        self._hasher = hasher

    @property
    def repository(self) -> UserRepository:
        return self._repository

    def validate_user(self, user: User) -> None:
        """Raise the first :class:`ValidationError` that applies to ``user``.

        Checks run in a fixed order: empty fields, email format, username
        characters, username length, then password length.
        """

        if not user.email or not user.username or not user.password:
            raise EmptyRequiredFieldError()
        if EMAIL_PATTERN.fullmatch(user.email) is None:
            raise InvalidEmailError()
        if not _is_alphanumeric(user.username):
            raise InvalidUsernameError()
        if not USERNAME_MIN_LENGTH <= len(user.username) <= USERNAME_MAX_LENGTH:
            raise InvalidUsernameLengthError()
        if len(user.password) < PASSWORD_MIN_LENGTH:
            raise PasswordTooShortError()

    def hash_password(self, password: str) -> str:
        return self._hasher.hash(password)

    def compare_hash_and_password(self, hashed: str, password: str) -> None:
        """Raise :class:`WrongPasswordError` if ``password`` does not match ``hashed``.

        A malformed ``hashed`` value raises :class:`ValueError` instead.
        """

        if not self._hasher.matches(hashed, password):
            raise WrongPasswordError()

    def create_user(self, user: User) -> int:
        """Validate ``user``, hash its password in place and store it.

        Returns the id assigned by the repository, which is also set on
        ``user``.
        """

        self.validate_user(user)
        user.password = self.hash_password(user.password)
        return self._repository.create(user)

    def authenticate_user(self, email: str, password: str) -> User:
        user = self._repository.get_by_email(email)
        try:
            self.compare_hash_and_password(user.password, password)
        except WrongPasswordError:
            logger.warning("Wrong password supplied for user %s", user.id)
            raise
        return user


__all__ = [
    "AuthService",
    "EMAIL_PATTERN",
    "EmptyRequiredFieldError",
    "InvalidEmailError",
    "InvalidUsernameError",
    "InvalidUsernameLengthError",
    "PASSWORD_MIN_LENGTH",
    "PasswordTooShortError",
    "USERNAME_MAX_LENGTH",
    "USERNAME_MIN_LENGTH",
    "ValidationError",
    "WrongPasswordError",
    "is_validation_error",
]
