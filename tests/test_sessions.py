from __future__ import annotations

from types import SimpleNamespace

import pytest

from accounts.sessions import UserNotLoggedInError, UserNotSetError, UserSession

TEST_USERNAME = "radovskyb"


def _request() -> SimpleNamespace:
    # Stands in for a Starlette request; SessionMiddleware exposes a plain dict.
    return SimpleNamespace(session={})


def test_current_user_without_login() -> None:
    with pytest.raises(UserNotSetError):
        UserSession().current_user(_request())


def test_log_in_user() -> None:
    session = UserSession()
    request = _request()

    session.log_in_user(request, TEST_USERNAME)

    assert session.user_logged_in(request)
    assert session.current_user(request) == TEST_USERNAME
    assert request.session == {"loggedin": True, "username": TEST_USERNAME}


def test_log_out_user_clears_session() -> None:
    session = UserSession()
    request = _request()
    session.log_in_user(request, TEST_USERNAME)
    request.session["extra"] = "value"

    session.log_out_user(request)

    assert request.session == {}
    assert not session.user_logged_in(request)
    with pytest.raises(UserNotSetError):
        session.current_user(request)


def test_log_out_without_login() -> None:
    with pytest.raises(UserNotLoggedInError):
        UserSession().log_out_user(_request())


def test_user_logged_in_requires_true_flag() -> None:
    request = _request()
    request.session["loggedin"] = "yes"

    assert not UserSession().user_logged_in(request)
