"""
auth/passwords.py -- bcrypt password hashing with a configurable work factor.

Using bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug detection
builds a password longer than 72 bytes, which bcrypt 4.x+ rejects. Direct
bcrypt usage has no compatibility shim.

72-byte limit:
  bcrypt only reads the first 72 bytes of its input, and bcrypt 5 raises
  ValueError instead of truncating. Both hash() and verify() truncate the
  UTF-8 encoding to 72 bytes themselves, so any valid str hashes without error
  and verifies the same way it was hashed.

Layer rule: no imports from api/, accounts/, or core/.
"""

from __future__ import annotations

import bcrypt

_BCRYPT_MAX_BYTES = 72
MIN_ROUNDS = 4
MAX_ROUNDS = 31


class HashingError(Exception):
    """bcrypt failed on input it should have accepted."""


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted bcrypt hashing with a work factor fixed at construction.

    rounds is the bcrypt cost (log2 of the iteration count). Each +1 doubles
    the time to hash and to brute-force. Deployments set it through
    BCRYPT_ROUNDS; tests use the minimum to stay fast.
    """

    def __init__(self, rounds: int = 12) -> None:
        if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
            raise ValueError(f"bcrypt rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}, got {rounds}")
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of plain. A fresh salt is generated on every call."""
        try:
            hashed = bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds))
        except ValueError as exc:
            raise HashingError("bcrypt could not hash the password") from exc
        return hashed.decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed.

        checkpw compares in constant time. A malformed or empty stored hash
        is a mismatch, not an error.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False
