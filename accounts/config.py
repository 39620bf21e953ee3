"""Configuration management for the accounts service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .passwords import DEFAULT_BCRYPT_ROUNDS, MAX_BCRYPT_ROUNDS, MIN_BCRYPT_ROUNDS
from .sessions import SESSION_COOKIE_NAME

BACKENDS = ("sqlite", "memory")

_ENV_KEYS = {
    "backend": "ACCOUNTS_BACKEND",
    "database_path": "ACCOUNTS_DB_PATH",
    "session_secret": "ACCOUNTS_SESSION_SECRET",
    "session_cookie": "ACCOUNTS_SESSION_COOKIE",
    "session_secure": "ACCOUNTS_SESSION_SECURE",
    "bcrypt_rounds": "ACCOUNTS_BCRYPT_ROUNDS",
}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the repository, hashing and session layers."""

    backend: str = "sqlite"
    database_path: Path = resolve_database_path(None)
    session_secret: Optional[str] = None
    session_cookie: str = SESSION_COOKIE_NAME
    session_secure: bool = False
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(
                f"{_ENV_KEYS['backend']} must be one of {', '.join(BACKENDS)}, got '{self.backend}'"
            )
        if not MIN_BCRYPT_ROUNDS <= self.bcrypt_rounds <= MAX_BCRYPT_ROUNDS:
            raise ValueError(
                f"{_ENV_KEYS['bcrypt_rounds']} must be between {MIN_BCRYPT_ROUNDS} and "
                f"{MAX_BCRYPT_ROUNDS}, got {self.bcrypt_rounds}"
            )

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        unknown = set(data.keys()) - set(_ENV_KEYS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        values: Dict[str, object] = {}
        if "backend" in data:
            values["backend"] = str(data["backend"]).strip().lower()
        if data.get("database_path"):
            raw_path = Path(str(data["database_path"])).expanduser()
            if not raw_path.is_absolute() and base_path is not None:
                raw_path = base_path / raw_path
            values["database_path"] = raw_path.resolve(strict=False)
        if data.get("session_secret") is not None:
            values["session_secret"] = str(data["session_secret"])
        if data.get("session_cookie"):
            values["session_cookie"] = str(data["session_cookie"])
        if "session_secure" in data:
            secure = data["session_secure"]
            values["session_secure"] = _env_flag(secure) if isinstance(secure, str) else bool(secure)
        if "bcrypt_rounds" in data:
            values["bcrypt_rounds"] = int(data["bcrypt_rounds"])  # type: ignore[arg-type]
        return Settings(**values)  # type: ignore[arg-type]


def _apply_environment(settings: Settings, environ: Mapping[str, str]) -> Settings:
    updates: Dict[str, object] = {}

    backend = environ.get(_ENV_KEYS["backend"])
    if backend:
        updates["backend"] = backend.strip().lower()

    db_path = environ.get(_ENV_KEYS["database_path"])
    if db_path:
        updates["database_path"] = resolve_database_path(db_path)

    secret = environ.get(_ENV_KEYS["session_secret"])
    if secret:
        updates["session_secret"] = secret

    cookie = environ.get(_ENV_KEYS["session_cookie"])
    if cookie and cookie.strip():
        updates["session_cookie"] = cookie.strip()

    secure = environ.get(_ENV_KEYS["session_secure"])
    if secure is not None:
        updates["session_secure"] = _env_flag(secure)

    rounds = environ.get(_ENV_KEYS["bcrypt_rounds"])
    if rounds:
        try:
            updates["bcrypt_rounds"] = int(rounds)
        except ValueError as exc:
            raise ValueError(f"{_ENV_KEYS['bcrypt_rounds']} must be an integer, got '{rounds}'") from exc

    return replace(settings, **updates) if updates else settings


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file overlaid with environment variables."""

    if environ is None:
        environ = os.environ

    if config_path is None and environ.get("ACCOUNTS_CONFIG"):
        config_path = Path(environ["ACCOUNTS_CONFIG"]).expanduser()

    settings = Settings()
    if config_path is not None:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        settings = Settings.from_dict(raw, base_path=config_path.parent)

    return _apply_environment(settings, environ)


__all__ = ["BACKENDS", "Settings", "load_settings"]
