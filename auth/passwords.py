"""
auth/passwords.py -- Password hashing (bcrypt, direct usage, no passlib wrapper).

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

bcrypt embeds a fresh salt and the cost factor in every hash, so two hashes of
the same password differ and checkpw() needs nothing but the stored string.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.errors import HashingFailure

logger = logging.getLogger("wdpl.auth")

_DUMMY_PASSWORD = "wdpl_timing_dummy"
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Hash and verify passwords with a fixed bcrypt cost factor.

    rounds: bcrypt log2 work factor. 12 costs roughly 250ms per call on a
            modern core; tests use 4 (the bcrypt minimum).
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        Raises HashingFailure if bcrypt refuses the input (newer bcrypt
        releases reject passwords longer than 72 bytes instead of truncating).
        The API caps password length well below that.
        """
        try:
            return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingFailure("password hashing failed") from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        A malformed stored hash, or a plaintext over bcrypt's 72-byte limit,
        is reported as a mismatch, not raised.
        """
        password = plain.encode("utf-8")
        if len(password) > _BCRYPT_MAX_BYTES:
            logger.warning("Password over %d bytes rejected before bcrypt", _BCRYPT_MAX_BYTES)
            return False
        try:
            return bcrypt.checkpw(password, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    def verify_dummy(self, plain: str) -> None:
        """Spend one bcrypt verification on a throwaway hash.

        Called when the email is unknown so the response takes as long as a
        wrong-password check and does not reveal whether the account exists.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(_DUMMY_PASSWORD)
        self.verify(plain, self._dummy_hash)
