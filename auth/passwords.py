"""
auth/passwords.py -- bcrypt password hashing with a configurable cost factor.

bcrypt is used directly rather than through passlib: passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import bcrypt

# bcrypt.gensalt() accepts log_rounds in this closed range.
MIN_ROUNDS = 4
MAX_ROUNDS = 31

# bcrypt ignores everything past this many bytes of input.
MAX_PASSWORD_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Salted one-way hashing and verification.

    Usage:
        hasher = PasswordHasher(rounds=10)
        hashed = hasher.hash("secret")
        hasher.verify("secret", hashed)  # True
    """

    def __init__(self, rounds: int = 10) -> None:
        if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
            raise ValueError(f"bcrypt rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}, got {rounds}")
        self.rounds = rounds
        # Timing equalization hash. Computed once so the first login attempt
        # for an unknown user costs the same as every later one.
        self._dummy_hash = self.hash("pickuplog_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of plain with a fresh random salt.

        Only the first 72 UTF-8 bytes of plain take part, as with every bcrypt
        implementation. Newer bcrypt releases raise instead of truncating, so
        the cut happens here before the library sees the password.
        """
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str | None) -> bool:
        """Return True if plain matches hashed. Malformed or missing hashes return False."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def verify_dummy(self, plain: str) -> None:
        """Burn one bcrypt comparison. Used when the username does not exist."""
        self.verify(plain, self._dummy_hash)
