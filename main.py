"""Command-line interface for the accounts service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from accounts.application import open_repository
from accounts.config import Settings, load_settings

logger = logging.getLogger("accounts.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Accounts service utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (defaults to ACCOUNTS_CONFIG when set)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the users table if it does not exist")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP accounts service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the service")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP service (default: 8000)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db"}

    # Global options precede the subcommand.
    prefix: list[str] = []
    if args_list[:1] == ["--config"] and len(args_list) >= 2:
        prefix, args_list = args_list[:2], args_list[2:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args([*prefix, *args_list])
        if first not in known_commands:
            args_list = ["serve", *args_list]

    return parser.parse_args([*prefix, *args_list])


def _load_settings(config: str | None) -> Settings:
    config_path = Path(config).expanduser() if config else None
    return load_settings(config_path)


def _initialise_database(settings: Settings) -> None:
    if settings.backend != "sqlite":
        logger.info("Backend %s needs no initialisation", settings.backend)
        return
    repository = open_repository(settings)
    repository.close()
    logger.info("Database initialised at %s", settings.database_path)


def _serve(settings: Settings, *, host: str, port: int) -> None:
    from accounts.application import create_application
    import uvicorn

    if not settings.session_secret:
        raise SystemExit("ACCOUNTS_SESSION_SECRET must be set before starting the service.")

    logger.info("Starting accounts service on http://%s:%s", host, port)
    app = create_application(settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = _load_settings(args.config)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
    elif args.command == "init-db":
        _initialise_database(settings)
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
