"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors
records/models.py -- dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A local account able to log in.

    username is unique and never changes after creation. password_hash is an
    opaque bcrypt string produced by auth.passwords.PasswordHasher.

    id is None before the record is written to the database.
    """

    username: str
    password_hash: str
    role: str  # "admin" for the seeded account
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Identity carried inside a session token.

    Produced by TokenIssuer.verify() and handed to route handlers by the
    authorization guard. Not persisted -- the server keeps no session table.
    """

    username: str
    role: str
