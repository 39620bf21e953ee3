"""Password hashing shared by the auth service and the repositories."""

from __future__ import annotations

from passlib.context import CryptContext

DEFAULT_BCRYPT_ROUNDS = 12
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost."""

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        if not MIN_BCRYPT_ROUNDS <= rounds <= MAX_BCRYPT_ROUNDS:
            raise ValueError(
                f"bcrypt rounds must be between {MIN_BCRYPT_ROUNDS} and {MAX_BCRYPT_ROUNDS}"
            )
        self._rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def matches(self, hashed: str, password: str) -> bool:
        """Return whether ``password`` matches ``hashed``.

        Raises :class:`ValueError` when ``hashed`` is not a recognisable bcrypt
        hash, so that a corrupted record is never reported as a mismatch.
        """

        return self._context.verify(password, hashed)


__all__ = ["DEFAULT_BCRYPT_ROUNDS", "MAX_BCRYPT_ROUNDS", "MIN_BCRYPT_ROUNDS", "PasswordHasher"]
