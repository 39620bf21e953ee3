import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accounts.application import open_repository
from accounts.auth import AuthService, PASSWORD_MIN_LENGTH
from accounts.config import load_settings
from accounts.models import User
from accounts.repository import AccountError


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an account user")
    parser.add_argument("email", help="Unique email address for login")
    parser.add_argument("username", help="Unique alphanumeric username")
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to a YAML settings file (defaults to ACCOUNTS_CONFIG)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password) < PASSWORD_MIN_LENGTH:
            print(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    args = parse_args()
    settings = load_settings(Path(args.config_path) if args.config_path else None)
    if settings.backend != "sqlite":
        print("Users can only be created ahead of time in the sqlite backend.", file=sys.stderr)
        return 1

    password = prompt_for_password()

    with open_repository(settings) as repository:
        auth = AuthService(repository)
        user = User(email=args.email.strip(), username=args.username.strip(), password=password)
        try:
            auth.create_user(user)
        except AccountError as exc:  # validation, duplicates, etc.
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    print(f"Created user #{user.id}: {user.username} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
