"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as records/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  username uniqueness is enforced by the UNIQUE constraint on the column, not
  by a check-then-insert in code. create_user() turns the resulting
  IntegrityError into ConflictError.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from core.config import DEFAULT_ADMIN_PASSWORD, get_settings
from core.database import make_engine, now_iso
from core.errors import ConflictError, StorageError

if TYPE_CHECKING:
    from auth.passwords import PasswordHasher

logger = logging.getLogger("pickuplog.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        store.create_user("clerk", hasher.hash("secret"), "clerk")
        user = store.find_user_by_username("clerk")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def find_user_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create_user(self, username: str, password_hash: str, role: str) -> User:
        """Insert a new user and return it with its assigned id.

        Raises ConflictError if the username already exists. Callers that race
        to create the same account (e.g. two bootstraps) should treat
        ConflictError as "someone else already did it".
        """
        created_at = now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        password_hash=password_hash,
                        role=role,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise ConflictError(f"User {username!r} already exists") from exc
        except SQLAlchemyError as exc:
            raise StorageError("Could not create user") from exc
        return User(
            id=result.inserted_primary_key[0],
            username=username,
            password_hash=password_hash,
            role=role,
            created_at=created_at,
        )

    def count_users(self) -> int:
        """Return the number of accounts. Used for the startup log line."""
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_users)).scalar() or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def seed_default_admin(
    store: UserStore,
    hasher: PasswordHasher,
    username: str = "admin",
    password: str = DEFAULT_ADMIN_PASSWORD,
) -> bool:
    """Create the admin account on first startup. Returns True if it was created.

    Check-then-create is fine here because the UNIQUE constraint still guards
    the insert: if another process seeds between our lookup and our insert,
    create_user() raises ConflictError and we carry on.
    """
    if store.find_user_by_username(username) is not None:
        return False
    if password == DEFAULT_ADMIN_PASSWORD:
        logger.warning(
            "Seeding %r with the built-in default password. Set DEFAULT_ADMIN_PASSWORD to change it.",
            username,
        )
    try:
        store.create_user(username, hasher.hash(password), "admin")
    except ConflictError:
        logger.info("Default admin %r was created concurrently; skipping seed", username)
        return False
    logger.info("Seeded default admin %r", username)
    return True


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
        created_at=row.created_at,
    )
