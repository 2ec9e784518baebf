"""
tests/conftest.py -- Shared test fixtures for RoleKeeper tests.

This module provides:
  - make_settings(): explicit Settings for tests (no .env, fast bcrypt)
  - api_client: TestClient on a fresh app with "alice" pre-created
  - settings_factory: make_settings as a fixture, for tests that need their own app

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Each test module gets its own database name so modules never share rows.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings

TEST_SECRET = "rolekeeper-test-secret-0123456789abcdef"
ALICE_PASSWORD = "correct-horse"


def make_settings(db_suffix: str, **overrides) -> Settings:
    """Build Settings for tests. bcrypt_rounds=4 keeps hashing fast."""
    values = {
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:test_{db_suffix}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, int], None, None]:
    """Yield (client, alice_id) for API integration tests.

    The TestClient runs the real lifespan, so routes use a real AccountStore
    on an isolated in-memory database. alice is created directly through the
    store with password "correct-horse".
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    app = create_app(make_settings(suffix))

    with TestClient(app, raise_server_exceptions=True) as client:
        ctx = app.state.context
        alice = ctx.store.create_user("alice", ctx.hasher.hash(ALICE_PASSWORD))
        yield client, alice.id


@pytest.fixture
def alice_token(api_client: tuple[TestClient, int]) -> str:
    """A fresh token for alice obtained through POST /api/v1/login."""
    client, _ = api_client
    resp = client.post("/api/v1/login", json={"username": "alice", "password": ALICE_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture
def settings_factory():
    """make_settings, for tests that build their own app."""
    return make_settings
