"""
API request and response models for the pickup log REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
records/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from records.models import Pickup

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    Validated by hand inside the route (not as a FastAPI body parameter) so a
    malformed body is reported as bad credentials rather than a 422.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


def _as_text(value):
    """Pass strings and None through; JSON-encode any other JSON value."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


class ContactUpsert(BaseModel):
    """Request body for POST /api/contact. phone and email replace the stored values."""

    name: str = Field(min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator("phone", "email", mode="before")
    @classmethod
    def serialize_text(cls, value):
        return _as_text(value)


class PickupCreate(BaseModel):
    """Request body for POST /api/pickup.

    Only name is required. items, datetime and signature are opaque text:
    any other JSON value (an array of items, a numeric timestamp) is
    serialized to a JSON string before storage, and that string is what
    reads return.
    """

    name: str = Field(min_length=1)
    items: Optional[str] = None
    datetime: Optional[str] = None
    signature: Optional[str] = None

    @field_validator("items", "datetime", "signature", mode="before")
    @classmethod
    def serialize_text(cls, value):
        return _as_text(value)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class SuccessResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True


class ContactResponse(BaseModel):
    """A stored contact. GET /api/contact/{name} returns {} instead when none exists."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    phone: Optional[str]
    email: Optional[str]


class PickupResponse(BaseModel):
    """One ledger entry in GET /api/pickups responses."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    items: Optional[str]
    datetime: Optional[str]
    signature: Optional[str]

    @classmethod
    def from_pickup(cls, pickup: Pickup) -> "PickupResponse":
        return cls(
            id=pickup.id,
            name=pickup.name,
            items=pickup.items,
            datetime=pickup.datetime,
            signature=pickup.signature,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
