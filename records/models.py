"""
records/models.py -- Domain dataclasses for contacts and pickups.

These are pure data containers with zero logic. Upsert and ordering rules live
in records/store.py.

Contact.name and Pickup.name are independent namespaces: a pickup may name
someone who has no contact record, and nothing links the two tables.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Contact:
    """Contact details for a person, keyed by a unique name.

    An upsert replaces phone and email in place; id stays the same across
    updates. No history is kept.

    id is None before the record is written to the database.
    """

    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Pickup:
    """Immutable entry in the pickup ledger.

    Records are never updated or deleted -- only inserted.

    items      -- opaque text (clients usually send a serialized list)
    datetime   -- client-supplied timestamp string (may be absent), stored verbatim; the ledger
                  orders by it as text
    signature  -- opaque blob, typically an image data URL

    id is None before the record is written to the database.
    """

    name: str
    datetime: Optional[str] = None
    items: Optional[str] = None
    signature: Optional[str] = None
    id: Optional[int] = None
