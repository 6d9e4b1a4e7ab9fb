"""
records/store.py -- SQLAlchemy-backed persistence for contacts and pickups.

Uses SQLAlchemy Core (not ORM) so the dataclasses in records/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. ContactRegistry and PickupLedger are the
repositories (one per table); the _row_to_* functions are the mappers.

Consistency rules:
  contacts -- at most one row per name. upsert() is a single
      INSERT ... ON CONFLICT(name) DO UPDATE statement, so concurrent upserts
      for the same name resolve inside the database (last committed write
      wins) and can never produce a duplicate row.
  pickups  -- append-only. There is no update or delete method. Reads order
      by the datetime column as text, newest first; equal timestamps fall back
      to insertion order (newest first), and pickups without a datetime
      come last.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    contacts = ContactRegistry()                                # SQLite default
    contacts = ContactRegistry("postgresql://user:pw@host/db")  # PostgreSQL
    contacts.upsert("Alice", "555-0100", "alice@example.com")
    ledger = PickupLedger()
    ledger.append("Alice", '["box"]', "2024-03-01T10:00", "data:image/png;base64,...")
    ledger.list_by_name("Alice")
"""

import logging
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, Table, Text
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import get_settings
from core.database import make_engine
from core.errors import StorageError
from records.models import Contact, Pickup

logger = logging.getLogger("pickuplog.records")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
    Column("phone", Text),
    Column("email", Text),
)

_pickups = Table(
    "pickups",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, index=True),
    Column("items", Text),
    Column("datetime", Text),
    Column("signature", Text),  # data URL; can run to megabytes
)

# Dialects whose INSERT construct supports ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class ContactRegistry:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        dialect = self.engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            self.engine.dispose()
            raise ValueError(f"ContactRegistry needs a database with ON CONFLICT support, got {dialect!r}")
        self._insert = _UPSERT_INSERTS[dialect]
        metadata.create_all(self.engine, tables=[_contacts])

    def get_by_name(self, name: str) -> Optional[Contact]:
        """Fetch the contact for an exact name. Returns None when there is none yet."""
        with self.engine.connect() as conn:
            row = conn.execute(_contacts.select().where(_contacts.c.name == name)).fetchone()
        return _row_to_contact(row) if row is not None else None

    def upsert(self, name: str, phone: Optional[str], email: Optional[str]) -> None:
        """Create the contact, or replace phone and email on the existing row.

        The row's id is preserved on update. Raises StorageError on any
        database failure.
        """
        stmt = self._insert(_contacts).values(name=name, phone=phone, email=email)
        stmt = stmt.on_conflict_do_update(
            index_elements=[_contacts.c.name],
            set_={"phone": stmt.excluded.phone, "email": stmt.excluded.email},
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(stmt)
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("Contact upsert failed for %r: %s", name, exc)
            raise StorageError("Could not save contact") from exc

    def close(self) -> None:
        self.engine.dispose()


class PickupLedger:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine, tables=[_pickups])

    def append(
        self,
        name: str,
        items: Optional[str],
        datetime: Optional[str],
        signature: Optional[str],
    ) -> int:
        """Insert a new pickup and return its ID.

        Never rejects duplicates -- two identical pickups are two records.
        Raises StorageError on any database failure.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _pickups.insert().values(
                        name=name,
                        items=items,
                        datetime=datetime,
                        signature=signature,
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("Pickup append failed for %r: %s", name, exc)
            raise StorageError("Could not record pickup") from exc
        return result.inserted_primary_key[0]

    def list_all(self) -> list[Pickup]:
        """Return every pickup, newest datetime first (text ordering)."""
        return self._select(_pickups.select())

    def list_by_name(self, name: str) -> list[Pickup]:
        """Return pickups whose name matches exactly (case-sensitive), newest first."""
        return self._select(_pickups.select().where(_pickups.c.name == name))

    def _select(self, query) -> list[Pickup]:
        query = query.order_by(_pickups.c.datetime.desc().nulls_last(), _pickups.c.id.desc())
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        except SQLAlchemyError as exc:
            raise StorageError("Could not read pickups") from exc
        return [_row_to_pickup(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_contact(row) -> Contact:
    return Contact(
        id=row.id,
        name=row.name,
        phone=row.phone,
        email=row.email,
    )


def _row_to_pickup(row) -> Pickup:
    # Read through _mapping: "items" would otherwise collide with Row's
    # mapping-style API on older SQLAlchemy releases.
    m = row._mapping
    return Pickup(
        id=m["id"],
        name=m["name"],
        items=m["items"],
        datetime=m["datetime"],
        signature=m["signature"],
    )
