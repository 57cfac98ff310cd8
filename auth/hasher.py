"""
auth/hasher.py -- One-way salted password hashing (bcrypt).

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Every hash() call draws a fresh salt from bcrypt.gensalt(), so hashing the
same password twice yields two different strings. The cost factor (rounds)
is embedded in the hash, so verify() needs no configuration.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10

# bcrypt ignores (4.x) or rejects (5.x) anything past this many bytes.
MAX_PASSWORD_BYTES = 72


class CredentialHasher:
    """bcrypt hash/verify with a configurable cost factor.

    Usage:
        hasher = CredentialHasher(rounds=12)
        hashed = hasher.hash("s3cret")
        hasher.verify("s3cret", hashed)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        # Timing equalization dummy hash. Computed once so the first login
        # attempt for an unknown email is not measurably slower than later ones.
        self._dummy_hash = self.hash("authgate_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        Raises ValueError for passwords longer than 72 UTF-8 bytes instead of
        letting bcrypt silently truncate them.
        """
        secret = plain.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(secret, salt).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        A malformed stored hash, or a password hash() would have refused,
        returns False rather than raising.
        """
        secret = plain.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(secret, hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def dummy_verify(self, plain: str) -> None:
        """Burn one verification's worth of CPU for an unknown account."""
        self.verify(plain, self._dummy_hash)
