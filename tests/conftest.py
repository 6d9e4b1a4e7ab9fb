"""
tests/conftest.py -- Shared test fixtures for the pickup log service.

This module provides:
  - _make_test_stores(): isolated in-memory DBs for users, contacts, pickups
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - hasher / issuer: cheap bcrypt hasher and a token issuer with a test secret
  - api_client: TestClient with an admin account and a valid bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

DEBUG and RATE_LIMIT_ENABLED must be set before any app import: get_settings()
is cached on first use, and the limiter reads its enabled flag at import.
"""

from __future__ import annotations

import os
import re
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# Set before any core/auth/api import so get_settings() auto-generates
# SECRET_KEY and the login limiter does not throttle the suite.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Claims
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenIssuer
from records.store import ContactRegistry, PickupLedger

TEST_SECRET = "test-secret-key-with-at-least-32-characters"

# bcrypt's minimum cost keeps the suite fast; production uses BCRYPT_ROUNDS.
TEST_ROUNDS = 4


@dataclass
class ApiContext:
    client: TestClient
    token: str
    user_store: UserStore
    contacts: ContactRegistry
    ledger: PickupLedger
    issuer: TokenIssuer

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, ContactRegistry, PickupLedger]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules don't
                   share state.
    """
    url = f"sqlite:///file:test_pickuplog_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), ContactRegistry(db_url=url), PickupLedger(db_url=url)


def _patch_lifespan(
    user_store: UserStore,
    contacts: ContactRegistry,
    ledger: PickupLedger,
    hasher: PasswordHasher,
    issuer: TokenIssuer,
):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.contact_registry = contacts
        app.state.pickup_ledger = ledger
        app.state.password_hasher = hasher
        app.state.token_issuer = issuer
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def contacts() -> Generator[ContactRegistry, None, None]:
    registry = ContactRegistry("sqlite:///:memory:")
    yield registry
    registry.close()


@pytest.fixture
def ledger() -> Generator[PickupLedger, None, None]:
    store = PickupLedger("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def api_client(request, hasher: PasswordHasher) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    Each test gets fresh stores (named after the test id) so upsert and ledger
    assertions never see rows written by another test. The "admin"/"adminpass"
    account exists and ctx.token is a valid bearer token for it.
    """
    user_store, contacts, ledger = _make_test_stores(re.sub(r"\W", "_", request.node.nodeid))
    user_store.create_user("admin", hasher.hash("adminpass"), "admin")
    issuer = TokenIssuer(secret_key=TEST_SECRET)
    token = issuer.issue(Claims(username="admin", role="admin"))

    app.router.lifespan_context = _patch_lifespan(user_store, contacts, ledger, hasher, issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            token=token,
            user_store=user_store,
            contacts=contacts,
            ledger=ledger,
            issuer=issuer,
        )

    user_store.close()
    contacts.close()
    ledger.close()
