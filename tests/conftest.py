"""
tests/conftest.py -- Shared test fixtures for the auth API tests.

This module provides:
  - make_store(): isolated named shared-memory SQLite UserStore
  - make_service(): AuthService over a test store, a mock mailer and a
    controllable clock
  - _patch_lifespan(): wires test collaborators into app.state, bypassing
    real startup
  - api_client: (client, service, mailer) -- TestClient against the real app

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.

DEBUG must be set before any core/auth import so get_settings()
auto-generates SECRET_KEY instead of raising ValueError. BCRYPT_ROUNDS is
lowered to keep the suite fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

# CRITICAL: set before importing anything that calls get_settings().
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.mailer import Mailer
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced replacement for time.time()."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_store() -> UserStore:
    """Create a UserStore on a uniquely named shared-memory SQLite database."""
    name = f"test_auth_{uuid.uuid4().hex}"
    return UserStore(f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true")


def make_service(store: UserStore, clock: FakeClock | None = None) -> tuple[AuthService, MagicMock]:
    """Return (service, mailer_mock). The mock records sends and never touches SMTP."""
    settings = get_settings()
    mailer = MagicMock(spec=Mailer)
    mailer.enabled = True
    service = AuthService(
        store,
        TokenIssuer(settings),
        mailer,
        bcrypt_rounds=settings.bcrypt_rounds,
        verify_otp_ttl=settings.verify_otp_ttl_seconds,
        reset_otp_ttl=settings.reset_otp_ttl_seconds,
        clock=clock or FakeClock(),
    )
    return service, mailer


def _patch_lifespan(store: UserStore, service: AuthService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.user_store = store
        app.state.auth_service = service
        app.state.token_issuer = service.tokens
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def service(store: UserStore, clock: FakeClock) -> tuple[AuthService, MagicMock]:
    return make_service(store, clock)


@pytest.fixture
def api_client(store: UserStore, clock: FakeClock) -> Generator[tuple[TestClient, AuthService, MagicMock], None, None]:
    """Yield (client, service, mailer) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers and dependencies against an isolated store.
    The client keeps cookies between requests like a browser would.
    """
    svc, mailer = make_service(store, clock)
    app.router.lifespan_context = _patch_lifespan(store, svc)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, svc, mailer


@pytest.fixture
def service_factory():
    """make_service() as a fixture, for tests that bring their own store."""
    return make_service
