"""Cookie-backed login state for the accounts web interface.

The signed cookie itself is handled by Starlette's ``SessionMiddleware``;
this module only reads and writes the per-client ``request.session`` mapping
that the middleware exposes.
"""

from __future__ import annotations

from typing import Any, MutableMapping

SESSION_COOKIE_NAME = "user_session"

_LOGGED_IN_KEY = "loggedin"
_USERNAME_KEY = "username"


class SessionError(Exception):
    """Base class for session state errors."""


class UserNotLoggedInError(SessionError):
    def __init__(self, message: str = "user is not logged in") -> None:
        super().__init__(message)


class UserNotSetError(SessionError):
    def __init__(self, message: str = "user is not set for user_session") -> None:
        super().__init__(message)


def _session_of(request: Any) -> MutableMapping[str, Any]:
    return request.session


class UserSession:
    """Track the logged-in username for a client session."""

    def log_in_user(self, request: Any, username: str) -> None:
        session = _session_of(request)
        session[_LOGGED_IN_KEY] = True
        session[_USERNAME_KEY] = username

    def log_out_user(self, request: Any) -> None:
        session = _session_of(request)
        if session.get(_LOGGED_IN_KEY) is not True:
            raise UserNotLoggedInError()
        session.clear()

    def user_logged_in(self, request: Any) -> bool:
        return _session_of(request).get(_LOGGED_IN_KEY) is True

    def current_user(self, request: Any) -> str:
        username = _session_of(request).get(_USERNAME_KEY)
        if not isinstance(username, str):
            raise UserNotSetError()
        return username


__all__ = [
    "SESSION_COOKIE_NAME",
    "SessionError",
    "UserNotLoggedInError",
    "UserNotSetError",
    "UserSession",
]
