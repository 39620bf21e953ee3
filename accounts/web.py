"""Form-based HTTP handlers for registering, updating and logging in users."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware
from urllib.parse import parse_qs

from .auth import AuthService, EmptyRequiredFieldError, is_validation_error
from .models import User
from .passwords import PasswordHasher
from .repository import (
    DuplicateKeyError,
    UserNotFoundError,
    UserRepository,
    WrongPasswordError,
)
from .sessions import SESSION_COOKIE_NAME, UserNotLoggedInError, UserNotSetError, UserSession

logger = logging.getLogger("accounts.web")


def _error(exc: BaseException, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=status_code)


async def _parse_form(request: Request) -> Dict[str, str]:
    body_bytes = await request.body()
    content_type = request.headers.get("content-type", "")
    charset = "utf-8"
    if "charset=" in content_type:
        charset = content_type.split("charset=", 1)[1].split(";", 1)[0].strip() or "utf-8"
    try:
        decoded = body_bytes.decode(charset)
    except (LookupError, UnicodeDecodeError):
        decoded = body_bytes.decode("utf-8", errors="ignore")
    data = parse_qs(decoded, keep_blank_values=True)
    return {key: values[0] for key, values in data.items() if values}


def create_app(
    *,
    repository: UserRepository,
    session_secret: Optional[str],
    hasher: Optional[PasswordHasher] = None,
    session_cookie: str = SESSION_COOKIE_NAME,
    https_only: bool = False,
    close_repository: bool = False,
) -> FastAPI:
    """Create the accounts web application.

    With ``close_repository`` the repository is closed when the application
    shuts down.
    """

    if not session_secret:
        raise RuntimeError("ACCOUNTS_SESSION_SECRET must be configured to use the accounts interface")

    auth = AuthService(repository, hasher=hasher)
    user_session = UserSession()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if close_repository:
            repository.close()

    app = FastAPI(
        title="Accounts Service",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.repository = repository
    app.state.auth = auth

    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie=session_cookie,
        https_only=https_only,
        same_site="lax",
        max_age=60 * 60 * 24 * 7,
    )

    @app.post("/register", response_class=PlainTextResponse, name="register_user")
    async def register_user(request: Request):
        form = await _parse_form(request)
        user = User(
            email=form.get("email", ""),
            username=form.get("username", ""),
            password=form.get("password", ""),
        )

        try:
            auth.create_user(user)
        except Exception as exc:
            if is_validation_error(exc):
                return _error(exc, status.HTTP_400_BAD_REQUEST)
            if isinstance(exc, DuplicateKeyError):
                return _error(exc, status.HTTP_409_CONFLICT)
            logger.exception("Failed to register user")
            return _error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        logger.info("Registered user %s", user.id)
        return PlainTextResponse("")

    @app.post("/update", response_class=PlainTextResponse, name="update_user")
    async def update_user(request: Request):
        form = await _parse_form(request)

        try:
            current = user_session.current_user(request)
        except UserNotSetError as exc:
            return _error(exc, status.HTTP_404_NOT_FOUND)

        try:
            user_id = int(form.get("id", ""))
        except ValueError as exc:
            return _error(exc, status.HTTP_400_BAD_REQUEST)

        try:
            existing = repository.get(user_id)
        except UserNotFoundError as exc:
            return _error(exc, status.HTTP_404_NOT_FOUND)
        except Exception as exc:
            logger.exception("Failed to load user %s", user_id)
            return _error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        # The session may only modify its own account.
        if existing.username != current:
            return _error(UserNotFoundError(), status.HTTP_404_NOT_FOUND)

        updated = User(
            id=user_id,
            email=form.get("email", ""),
            username=form.get("username", ""),
            password=form.get("password", ""),
        )
        try:
            auth.validate_user(updated)
            updated.password = auth.hash_password(updated.password)
            repository.update(updated)
        except Exception as exc:
            if is_validation_error(exc):
                return _error(exc, status.HTTP_400_BAD_REQUEST)
            if isinstance(exc, DuplicateKeyError):
                return _error(exc, status.HTTP_409_CONFLICT)
            if isinstance(exc, UserNotFoundError):
                return _error(exc, status.HTTP_404_NOT_FOUND)
            logger.exception("Failed to update user %s", user_id)
            return _error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        user_session.log_in_user(request, updated.username)
        logger.info("Updated user %s", user_id)
        return PlainTextResponse("")

    @app.post("/login", response_class=PlainTextResponse, name="user_login")
    async def user_login(request: Request):
        form = await _parse_form(request)
        email = form.get("email", "")
        password = form.get("password", "")

        # A blank-field check saves a repository round trip.
        if not email or not password:
            return _error(EmptyRequiredFieldError(), status.HTTP_400_BAD_REQUEST)

        try:
            user = auth.authenticate_user(email, password)
        except UserNotFoundError as exc:
            logger.warning("Failed login attempt for unknown email %s", email)
            return _error(exc, status.HTTP_404_NOT_FOUND)
        except WrongPasswordError as exc:
            return _error(exc, status.HTTP_401_UNAUTHORIZED)
        except Exception as exc:
            logger.exception("Failed to authenticate %s", email)
            return _error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        user_session.log_in_user(request, user.username)
        logger.info("User %s logged in", user.id)
        return PlainTextResponse("")

    @app.post("/logout", response_class=PlainTextResponse, name="user_logout")
    async def user_logout(request: Request):
        username = request.session.get("username")
        try:
            user_session.log_out_user(request)
        except UserNotLoggedInError as exc:
            return _error(exc, status.HTTP_404_NOT_FOUND)
        except Exception as exc:
            logger.exception("Failed to log out user %s", username)
            return _error(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        logger.info("User %s logged out", username)
        return PlainTextResponse("")

    return app


__all__ = ["create_app"]
