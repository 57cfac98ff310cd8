"""
tests/conftest.py -- Shared test fixtures for AuthGate.

This module provides:
  - hasher: CredentialHasher at bcrypt's minimum cost (fast tests)
  - shared_memory_url(): a unique named shared-memory SQLite URL
  - context(): builds an InboundRequest that passes or fails CSRF on demand
  - gateway: AuthGateway wired to an isolated store
  - api_client: TestClient whose lifespan wires an isolated store into app.state

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
wherever store calls run in worker threads (the gateway uses
asyncio.to_thread, TestClient runs the app in another thread). Plain :memory:
DBs are per-connection and would present a blank schema to each thread.

DEBUG and BCRYPT_ROUNDS must be set before any core/auth import so
get_settings() auto-generates SECRET_KEY and bcrypt stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.limiter import build_limiter
from api.main import app, init_services
from auth.csrf import generate_secret, generate_token
from auth.gateway import AuthGateway
from auth.guards import CsrfGuard, GuardChain, RateLimitGuard
from auth.hasher import CredentialHasher
from auth.models import InboundRequest
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

TEST_SECRET = "test-secret-key-for-authgate-0123456789abcdef"


class FakeClock:
    """Callable epoch clock that tests move by hand."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def shared_memory_url(prefix: str = "authgate") -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def context(
    client_address: str = "10.0.0.1",
    csrf: bool = True,
    authorization: str | None = None,
    method: str = "POST",
    path: str = "/",
) -> InboundRequest:
    """InboundRequest with a matching CSRF secret/token pair unless csrf=False."""
    secret = generate_secret() if csrf else None
    return InboundRequest(
        client_address=client_address,
        method=method,
        path=path,
        authorization=authorization,
        csrf_secret=secret,
        csrf_token=generate_token(secret) if secret else None,
    )


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture
def shared_store() -> Generator[UserStore, None, None]:
    store = UserStore(shared_memory_url())
    yield store
    store.close()


@pytest.fixture
def gateway(shared_store: UserStore, hasher: CredentialHasher, tokens: TokenService) -> AuthGateway:
    guards = GuardChain([RateLimitGuard(build_limiter()), CsrfGuard()])
    return AuthGateway(store=shared_store, hasher=hasher, tokens=tokens, guards=guards)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: UserStore):
    """Return a lifespan that wires the test store instead of DATABASE_URL."""

    @asynccontextmanager
    async def test_lifespan(app):
        init_services(app, get_settings(), store)
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient backed by a fresh store and fresh rate-limit counters.

    Function-scoped: each test starts with an empty directory and a new
    limiter, so rate-limit tests cannot leak into their neighbours.
    """
    store = UserStore(shared_memory_url("api"))
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    store.close()


def csrf_headers(client: TestClient) -> dict[str, str]:
    """Fetch a CSRF token (the cookie lands in the client jar) and return the header."""
    resp = client.get("/csrf-token")
    assert resp.status_code == 200, resp.text
    return {"X-CSRF-Token": resp.json()["csrf_token"]}
