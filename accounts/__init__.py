"""User accounts: storage, authentication and login sessions."""

from __future__ import annotations

from typing import Any

from .auth import AuthService, ValidationError, is_validation_error
from .database import SQLiteUserRepository, resolve_database_path
from .memory import InMemoryUserRepository
from .models import User
from .passwords import PasswordHasher
from .repository import (
    AccountError,
    DuplicateEmailError,
    DuplicateUsernameError,
    RepositoryError,
    UserNotFoundError,
    UserRepository,
    WrongPasswordError,
)


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the web application for a repository."""

    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


def create_application(*args: Any, **kwargs: Any):
    """Factory function that builds the web application from settings."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


__all__ = [
    "AccountError",
    "AuthService",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "InMemoryUserRepository",
    "PasswordHasher",
    "RepositoryError",
    "SQLiteUserRepository",
    "User",
    "UserNotFoundError",
    "UserRepository",
    "ValidationError",
    "WrongPasswordError",
    "create_app",
    "create_application",
    "is_validation_error",
    "resolve_database_path",
]
