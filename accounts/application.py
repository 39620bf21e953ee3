"""Application factory wiring settings, repository and web handlers together."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .config import Settings, load_settings
from .database import SQLiteUserRepository
from .memory import InMemoryUserRepository
from .passwords import PasswordHasher
from .repository import UserRepository
from .web import create_app

logger = logging.getLogger("accounts.application")


def open_repository(settings: Settings, *, hasher: Optional[PasswordHasher] = None) -> UserRepository:
    """Construct the repository backend named by ``settings.backend``."""

    if hasher is None:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    if settings.backend == "memory":
        logger.info("Using in-memory user repository")
        return InMemoryUserRepository(hasher=hasher)

    repository = SQLiteUserRepository(settings.database_path, hasher=hasher)
    repository.initialize()
    logger.info("Using SQLite user repository at %s", settings.database_path)
    return repository


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create the ASGI application from ``settings`` or the environment."""

    if settings is None:
        settings = load_settings()

    repository = open_repository(settings)
    app = create_app(
        repository=repository,
        session_secret=settings.session_secret,
        hasher=repository.hasher,
        session_cookie=settings.session_cookie,
        https_only=settings.session_secure,
        close_repository=True,
    )
    app.state.settings = settings
    return app


__all__ = ["create_application", "open_repository"]
