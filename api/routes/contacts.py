"""
api/routes/contacts.py -- Contact lookup and upsert endpoints.

Routes:
  GET  /api/contact/{name} -- stored contact, or {} when the name is unknown
  POST /api/contact        -- create or replace phone/email for a name

Both require a bearer token (require_identity). The empty object on a miss is
part of the contract: the client uses this lookup for autofill and treats
"no data yet" as a normal answer.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from api.models import ContactResponse, ContactUpsert, SuccessResponse
from auth.dependencies import require_identity
from auth.models import Claims
from records.store import ContactRegistry

router = APIRouter()


@router.get("/contact/{name}", response_model=None)
def get_contact(name: str, request: Request, identity: Claims = Depends(require_identity)) -> dict:
    registry: ContactRegistry = request.app.state.contact_registry
    contact = registry.get_by_name(name)
    if contact is None:
        return {}
    return ContactResponse(**asdict(contact)).model_dump()


@router.post("/contact", response_model=SuccessResponse)
def upsert_contact(
    body: ContactUpsert,
    request: Request,
    identity: Claims = Depends(require_identity),
) -> SuccessResponse:
    """Create the contact or overwrite its phone and email. Storage failures surface as 500."""
    registry: ContactRegistry = request.app.state.contact_registry
    registry.upsert(body.name, body.phone, body.email)
    return SuccessResponse()
