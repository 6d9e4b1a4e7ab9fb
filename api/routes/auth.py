"""
api/routes/auth.py -- Login endpoint.

Routes:
  POST /api/login -- username/password login; returns {"token": ...}

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_user() equalizes timing between unknown user and wrong
  password -- use it, never inline the lookup and comparison.
  Unknown user, wrong password and malformed body all produce the same 401
  body, so a caller cannot learn which part was wrong.
  Cache-Control: no-store on the token response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse
from auth.models import Claims
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer, authenticate_user
from core.config import get_settings
from core.errors import InvalidCredentials, LoginPayloadError

logger = logging.getLogger("pickuplog.api")

router = APIRouter()


# router.post must stay outermost: FastAPI has to register the limiter's wrapper.
@router.post("/login", response_model=LoginResponse)
@limiter.limit(get_settings().login_rate_limit)
async def login(request: Request) -> JSONResponse:
    """Exchange a username and password for a bearer token.

    The steps run strictly in order: parse the body, fetch the user, compare
    the password hash, and only then issue the token. Store access and bcrypt
    run in the threadpool so they do not block the event loop.
    """
    try:
        body = LoginRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        raise LoginPayloadError("Malformed login payload") from exc

    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.password_hasher
    user = await run_in_threadpool(authenticate_user, user_store, hasher, body.username, body.password)
    if user is None:
        logger.warning(
            "Failed login for %r from %s",
            body.username,
            request.client.host if request.client else "unknown",
        )
        raise InvalidCredentials("Invalid credentials.")

    issuer: TokenIssuer = request.app.state.token_issuer
    token = issuer.issue(Claims(username=user.username, role=user.role))
    logger.info("User %r logged in", user.username)
    resp = JSONResponse(content=LoginResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp
