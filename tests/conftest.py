"""
tests/conftest.py -- Shared test fixtures for MakeMyTrip integration tests.

This module provides:
  - _make_test_store(): creates an isolated in-memory user DB
  - _patch_lifespan(): wires the test store and fresh travel services into
    app.state, bypassing real startup
  - api_client: TestClient plus the UserStore behind it, with one seeded user

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

BCRYPT_STRENGTH is lowered before any app import so hashing in tests takes
milliseconds instead of ~100ms per call.
"""

from __future__ import annotations

import os
import random
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set before any auth/core import: get_settings() is cached on first call.
os.environ.setdefault("BCRYPT_STRENGTH", "4")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app, init_travel_services
from auth.models import User
from auth.passwords import get_password_encoder
from auth.store import UserStore

SEED_EMAIL = "traveller@example.com"
SEED_PASSWORD = "travelpass1"
# Fixed seed so the pre-booked seats are the same on every run.
SEAT_SEED = 20240701

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite user store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'users', 'cors').
    """
    return UserStore(db_url=f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        init_travel_services(app.state, rng=random.Random(SEAT_SEED))
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, user_store) for API integration tests.

    The TestClient uses the real FastAPI app (real middleware, real routes)
    with a patched lifespan and an isolated in-memory store. One user is
    seeded with SEED_EMAIL / SEED_PASSWORD.
    """
    user_store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    user_store.create_user(
        User(
            name="Seed Traveller",
            email=SEED_EMAIL,
            hashed_password=get_password_encoder().encode(SEED_PASSWORD),
        )
    )

    app.router.lifespan_context = _patch_lifespan(user_store)
    limiter.reset()

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store

    limiter.reset()
    user_store.close()
