"""
api/routes/pickups.py -- Pickup ledger endpoints.

Routes:
  POST /api/pickup         -- append a pickup record
  GET  /api/pickups        -- every pickup, newest datetime first
  GET  /api/pickups/{name} -- pickups for one exact name, newest datetime first

All require a bearer token (require_identity). There is no update or delete
route: the ledger is append-only.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.models import PickupCreate, PickupResponse, SuccessResponse
from auth.dependencies import require_identity
from auth.models import Claims
from records.store import PickupLedger

logger = logging.getLogger("pickuplog.api")

router = APIRouter()


@router.post("/pickup", response_model=SuccessResponse)
def add_pickup(
    body: PickupCreate,
    request: Request,
    identity: Claims = Depends(require_identity),
) -> SuccessResponse:
    ledger: PickupLedger = request.app.state.pickup_ledger
    pickup_id = ledger.append(body.name, body.items, body.datetime, body.signature)
    logger.info("Pickup %d recorded for %r by %s", pickup_id, body.name, identity.username)
    return SuccessResponse()


@router.get("/pickups", response_model=list[PickupResponse])
def list_pickups(request: Request, identity: Claims = Depends(require_identity)) -> list[PickupResponse]:
    ledger: PickupLedger = request.app.state.pickup_ledger
    return [PickupResponse.from_pickup(p) for p in ledger.list_all()]


@router.get("/pickups/{name}", response_model=list[PickupResponse])
def list_pickups_by_name(
    name: str,
    request: Request,
    identity: Claims = Depends(require_identity),
) -> list[PickupResponse]:
    """Exact, case-sensitive match on name. Unknown names return an empty list."""
    ledger: PickupLedger = request.app.state.pickup_ledger
    return [PickupResponse.from_pickup(p) for p in ledger.list_by_name(name)]
