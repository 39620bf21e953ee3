"""Domain models for the account subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass
class User:
    """Represents a user account.

    ``id`` is ``0`` until a repository assigns one. ``password`` holds the
    plaintext on its way into :meth:`AuthService.create_user` and the hash
    everywhere else.
    """

    id: int = 0
    email: str = ""
    username: str = ""
    password: str = field(default="", repr=False)

    def copy(self) -> "User":
        return replace(self)


__all__ = ["User"]
