"""
auth/tokens.py -- Session token issuing/verification and the login flow.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the username (as "sub") and the
       role. There is no "exp" and no "iat" claim: a token stays valid for as
       long as the signing secret is unchanged, and issuing twice for the same
       claims yields the same string. There is no revocation list. Any real
       deployment that needs expiry has to add it deliberately -- it changes
       what clients observe.

  Secret: passed to TokenIssuer at construction (api/main.py reads it from
       core.config.get_settings()). Nothing in this module holds a global
       secret, so tests build issuers with their own keys.

  Login: authenticate_user() fetches the user first, then compares the hash,
       and the route issues a token only after that succeeds. A missing user
       still pays for one bcrypt comparison so response time does not reveal
       whether a username exists.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.models import Claims

if TYPE_CHECKING:
    from auth.models import User
    from auth.passwords import PasswordHasher
    from auth.store import UserStore

logger = logging.getLogger("pickuplog.auth")

DEFAULT_ALGORITHM = "HS256"


class TokenIssuer:
    """Signs and verifies stateless bearer tokens.

    Usage:
        issuer = TokenIssuer(secret_key=settings.secret_key)
        token = issuer.issue(Claims(username="admin", role="admin"))
        issuer.verify(token)  # Claims(username="admin", role="admin")
    """

    def __init__(self, secret_key: str, algorithm: str = DEFAULT_ALGORITHM) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a non-empty secret_key")
        self._secret_key = secret_key
        self.algorithm = algorithm

    def issue(self, claims: Claims) -> str:
        """Encode claims into a signed JWT."""
        payload = {"sub": claims.username, "role": claims.role}
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims | None:
        """Decode and verify a JWT. Returns the claims or None on any failure.

        The signature is checked before any payload field is read, and both
        claims must be present strings -- a token missing either is rejected
        outright rather than partially trusted.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except (JWTError, AttributeError, TypeError):
            return None
        username = payload.get("sub")
        role = payload.get("role")
        if not isinstance(username, str) or not isinstance(role, str) or not username:
            return None
        return Claims(username=username, role=role)


def authenticate_user(store: UserStore, hasher: PasswordHasher, username: str, password: str) -> User | None:
    """Return the User for a correct username/password pair, None otherwise.

    Both failure kinds (unknown username, wrong password) return None after the
    same amount of bcrypt work, so callers cannot distinguish them.
    """
    user = store.find_user_by_username(username)
    if user is None:
        hasher.verify_dummy(password)
        return None
    if not hasher.verify(password, user.password_hash):
        return None
    return user
