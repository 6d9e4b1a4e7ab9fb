"""
auth/dependencies.py -- FastAPI Depends() helper guarding protected routes.

The guard distinguishes two failure kinds, and clients rely on the difference:
  - no bearer credential at all           -> Unauthenticated (HTTP 401)
  - a bearer credential that fails verify -> Forbidden       (HTTP 403)

A credential is "present" when the Authorization header has a non-empty
second space-separated word, as in "Bearer <token>". The scheme word is not
inspected: "Token abc" presents "abc" and fails verification (403). No header,
a bare scheme, or a single word counts as no credential (401).

The guard performs no role checks and no database lookup: tokens are
self-contained, so a verified token is sufficient.

Layer rule: no imports from api/ or records/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Claims
from auth.tokens import TokenIssuer
from core.errors import Forbidden, Unauthenticated


def bearer_token(request: Request) -> str | None:
    """Return the word after the scheme in the Authorization header, if any."""
    parts = request.headers.get("Authorization", "").split(" ")
    if len(parts) < 2:
        return None
    return parts[1] or None


def require_identity(request: Request) -> Claims:
    """Require a verified bearer token and return its claims.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Claims = Depends(require_identity)): ...

    The claims are also stored on request.state.identity so middleware (the
    request logger) can attribute the request.
    """
    token = bearer_token(request)
    if token is None:
        raise Unauthenticated("Authentication required.")

    issuer: TokenIssuer = request.app.state.token_issuer
    claims = issuer.verify(token)
    if claims is None:
        raise Forbidden("Invalid token.")

    request.state.identity = claims
    return claims
