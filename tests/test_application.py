from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from accounts.application import create_application, open_repository
from accounts.config import Settings
from accounts.database import SQLiteUserRepository
from accounts.memory import InMemoryUserRepository


def test_open_repository_selects_backend(tmp_path: Path) -> None:
    memory = open_repository(Settings(backend="memory", bcrypt_rounds=4))
    sqlite = open_repository(
        Settings(backend="sqlite", database_path=tmp_path / "db.sqlite3", bcrypt_rounds=5)
    )

    assert isinstance(memory, InMemoryUserRepository)
    assert memory.hasher.rounds == 4
    assert isinstance(sqlite, SQLiteUserRepository)
    assert sqlite.hasher.rounds == 5
    assert (tmp_path / "db.sqlite3").exists()


def test_application_closes_repository_on_shutdown(tmp_path: Path) -> None:
    settings = Settings(
        backend="sqlite",
        database_path=tmp_path / "db.sqlite3",
        session_secret="tests-secret-key",
        bcrypt_rounds=4,
    )
    app = create_application(settings)

    with TestClient(app) as client:
        response = client.post(
            "/register",
            data={"email": "alice@example.com", "username": "alice", "password": "password123"},
        )
        assert response.status_code == 200, response.text
        login = client.post("/login", data={"email": "alice@example.com", "password": "password123"})
        assert login.status_code == 200

    assert app.state.settings is settings
    response = TestClient(app).post(
        "/login", data={"email": "alice@example.com", "password": "password123"}
    )
    assert response.status_code == 500
