from __future__ import annotations

from pathlib import Path

import pytest

from accounts.config import Settings, load_settings
from accounts.sessions import SESSION_COOKIE_NAME


def test_defaults_without_environment() -> None:
    settings = load_settings(environ={})

    assert settings.backend == "sqlite"
    assert settings.database_path.name == "accounts.sqlite3"
    assert settings.session_secret is None
    assert settings.session_cookie == SESSION_COOKIE_NAME
    assert settings.session_secure is False
    assert settings.bcrypt_rounds == 12


def test_environment_overrides(tmp_path: Path) -> None:
    settings = load_settings(
        environ={
            "ACCOUNTS_BACKEND": "Memory",
            "ACCOUNTS_DB_PATH": str(tmp_path / "db.sqlite3"),
            "ACCOUNTS_SESSION_SECRET": "s3cret",
            "ACCOUNTS_SESSION_COOKIE": "sid",
            "ACCOUNTS_SESSION_SECURE": "yes",
            "ACCOUNTS_BCRYPT_ROUNDS": "6",
        }
    )

    assert settings == Settings(
        backend="memory",
        database_path=(tmp_path / "db.sqlite3").resolve(),
        session_secret="s3cret",
        session_cookie="sid",
        session_secure=True,
        bcrypt_rounds=6,
    )


def test_yaml_file_with_relative_database_path(tmp_path: Path) -> None:
    config_path = tmp_path / "accounts.yaml"
    config_path.write_text(
        "backend: sqlite\n"
        "database_path: data/users.sqlite3\n"
        "session_secret: from-file\n"
        "bcrypt_rounds: 5\n",
        encoding="utf-8",
    )

    settings = load_settings(config_path, environ={"ACCOUNTS_SESSION_SECRET": "from-env"})

    assert settings.database_path == (tmp_path / "data" / "users.sqlite3").resolve()
    assert settings.session_secret == "from-env"
    assert settings.bcrypt_rounds == 5


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_path = tmp_path / "accounts.yaml"
    config_path.write_text("backend: memory\n", encoding="utf-8")

    settings = load_settings(environ={"ACCOUNTS_CONFIG": str(config_path)})

    assert settings.backend == "memory"


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ValueError, match="ACCOUNTS_BACKEND"):
        load_settings(environ={"ACCOUNTS_BACKEND": "postgres"})


def test_non_integer_rounds_are_rejected() -> None:
    with pytest.raises(ValueError, match="ACCOUNTS_BCRYPT_ROUNDS"):
        load_settings(environ={"ACCOUNTS_BCRYPT_ROUNDS": "many"})


def test_unknown_yaml_keys_are_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "accounts.yaml"
    config_path.write_text("hosts: []\n", encoding="utf-8")

    with pytest.raises(ValueError, match="hosts"):
        load_settings(config_path, environ={})


@pytest.mark.parametrize("rounds", ["3", "32"])
def test_out_of_range_rounds_are_rejected(rounds: str) -> None:
    with pytest.raises(ValueError, match="ACCOUNTS_BCRYPT_ROUNDS"):
        load_settings(environ={"ACCOUNTS_BCRYPT_ROUNDS": rounds})


def test_out_of_range_rounds_in_yaml_are_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "accounts.yaml"
    config_path.write_text("bcrypt_rounds: 3\n", encoding="utf-8")

    with pytest.raises(ValueError, match="ACCOUNTS_BCRYPT_ROUNDS"):
        load_settings(config_path, environ={})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [('"false"', False), ('"no"', False), ('"0"', False), ('"yes"', True), ("true", True), ("false", False)],
)
def test_yaml_session_secure_flag(tmp_path: Path, raw: str, expected: bool) -> None:
    config_path = tmp_path / "accounts.yaml"
    config_path.write_text(f"session_secure: {raw}\n", encoding="utf-8")

    assert load_settings(config_path, environ={}).session_secure is expected
