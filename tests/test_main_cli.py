from pathlib import Path

import pytest

from main import _parse_args, main


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "0.0.0.0", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 8080


def test_config_option_precedes_subcommand() -> None:
    args = _parse_args(["--config", "accounts.yaml", "init-db"])
    assert args.command == "init-db"
    assert args.config == "accounts.yaml"


def test_init_db_creates_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    db_path = tmp_path / "accounts.sqlite3"
    monkeypatch.setenv("ACCOUNTS_DB_PATH", str(db_path))
    monkeypatch.delenv("ACCOUNTS_CONFIG", raising=False)
    monkeypatch.delenv("ACCOUNTS_BACKEND", raising=False)

    main(["init-db"])

    assert db_path.exists()


def test_serve_requires_session_secret(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCOUNTS_DB_PATH", str(tmp_path / "accounts.sqlite3"))
    monkeypatch.delenv("ACCOUNTS_SESSION_SECRET", raising=False)
    monkeypatch.delenv("ACCOUNTS_CONFIG", raising=False)

    with pytest.raises(SystemExit):
        main(["serve"])


def test_invalid_rounds_exit_with_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCOUNTS_BCRYPT_ROUNDS", "3")
    monkeypatch.delenv("ACCOUNTS_CONFIG", raising=False)

    with pytest.raises(SystemExit, match="ACCOUNTS_BCRYPT_ROUNDS"):
        main(["init-db"])
