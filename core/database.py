"""
core/database.py -- SQLAlchemy engine construction shared by every store.

Each repository (auth.store.UserStore, records.store.ContactRegistry,
records.store.PickupLedger) owns its own engine built here, so swapping SQLite
for PostgreSQL is a connection string change, not a rewrite.

Layer rule: no imports from api/, auth/, or records/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Return an Engine for db_url with SQLite connections tuned for threaded use.

    check_same_thread=False: FastAPI runs sync handlers in a threadpool, so a
    pooled connection may be used by a thread other than the one that opened it.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
