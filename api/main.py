"""
api/main.py -- FastAPI application entry point for the pickup log service.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware      -- adds CORS headers for allowed browser origins
  2. log_requests        -- one log line per request with latency and user
  3. limit_body_size     -- rejects bodies larger than MAX_BODY_BYTES with 413
  4. SlowAPIMiddleware   -- enforces per-route rate limits from api.limiter

Lifespan builds the stores, password hasher and token issuer once, seeds the
default admin account, and disposes the database engines on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.contacts import router as contacts_router
from api.routes.pickups import router as pickups_router
from auth.passwords import PasswordHasher
from auth.store import UserStore, seed_default_admin
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.errors import (
    ConflictError,
    Forbidden,
    InvalidCredentials,
    PickupLogError,
    StorageError,
    Unauthenticated,
)
from records.store import ContactRegistry, PickupLedger

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("pickuplog.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The token issuer receives the signing secret here and keeps it
    for the life of the process.
    """
    logger.info("Pickup log API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.contact_registry = ContactRegistry(_settings.database_url)
    app.state.pickup_ledger = PickupLedger(_settings.database_url)
    app.state.password_hasher = PasswordHasher(rounds=_settings.bcrypt_rounds)
    app.state.token_issuer = TokenIssuer(secret_key=_settings.secret_key)
    seed_default_admin(
        app.state.user_store,
        app.state.password_hasher,
        username=_settings.default_admin_username,
        password=_settings.default_admin_password,
    )
    logger.info("Stores initialized (%d user(s))", app.state.user_store.count_users())

    yield

    app.state.user_store.close()
    app.state.contact_registry.close()
    app.state.pickup_ledger.close()
    logger.info("Pickup log API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Pickup Log API",
    description="Authenticated contact registry and append-only pickup ledger.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Starlette wraps each newly added middleware around the ones registered before
# it, so registration runs innermost first: SlowAPI, body-size limit, request
# logging, then CORS as the outermost layer (so even 413/429 responses carry
# CORS headers).
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Reject requests whose declared Content-Length exceeds MAX_BODY_BYTES.

    Signature payloads make multi-megabyte bodies normal, so the ceiling is
    generous (10 MiB by default) rather than tight.
    """
    length = request.headers.get("content-length")
    if length is not None and length.isdigit() and int(length) > _settings.max_body_bytes:
        return JSONResponse(
            status_code=413,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="payload_too_large",
                    message=f"Request body exceeds {_settings.max_body_bytes} bytes.",
                )
            ).model_dump(),
        )
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    identity = getattr(request.state, "identity", None)
    logger.info(
        "%s %s %d %.1fms %s %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
        identity.username if identity is not None else "-",
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origin_list,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(contacts_router, prefix="/api", tags=["Contacts"])
app.include_router(pickups_router, prefix="/api", tags=["Pickups"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly. Every domain error maps to one status code.
# ---------------------------------------------------------------------------

# Looked up along the exception MRO: LoginPayloadError resolves via InvalidCredentials.
_DOMAIN_ERRORS: dict[type[PickupLogError], tuple[int, str, str | None]] = {
    Unauthenticated: (401, "unauthorized", "Authentication required."),
    Forbidden: (403, "forbidden", "Invalid token."),
    InvalidCredentials: (401, "bad_credentials", "Invalid credentials."),
    ConflictError: (409, "conflict", None),
    StorageError: (500, "storage_error", "The record could not be stored."),
}


@app.exception_handler(PickupLogError)
async def domain_error_handler(request: Request, exc: PickupLogError) -> JSONResponse:
    """Translate a domain error into its HTTP status and error envelope.

    A fixed message is used wherever the exception text could leak detail
    (login failures, storage failures). StorageError is logged with its cause.
    """
    status_code, code, message = 500, "internal_error", "An unexpected error occurred."
    for cls in type(exc).__mro__:
        if cls in _DOMAIN_ERRORS:
            status_code, code, message = _DOMAIN_ERRORS[cls]
            break
    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.__cause__ or exc)

    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message or str(exc))).model_dump(),
    )
    if isinstance(exc, Unauthenticated):
        response.headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, InvalidCredentials):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404, 405, ...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No auth and no rate limit.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)
