"""
tests/test_rate_limit.py -- Login rate limiting and request logging.

Each test builds its own app, so each gets a fresh Limiter with empty
counters. TestClient always connects as "testclient", so every request here
counts against the same client key.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi.testclient import TestClient

from api.main import create_app

ALICE_PASSWORD = "correct-horse"


@contextmanager
def _client_with_alice(settings) -> Iterator[TestClient]:
    app = create_app(settings)
    with TestClient(app) as client:
        ctx = app.state.context
        ctx.store.create_user("alice", ctx.hasher.hash(ALICE_PASSWORD))
        yield client


def _login(client: TestClient):
    return client.post("/api/v1/login", json={"username": "alice", "password": ALICE_PASSWORD})


def test_login_limit_returns_429_envelope(settings_factory) -> None:
    settings = settings_factory("rate_limited", rate_limit_enabled=True, login_rate_limit="2/minute")
    with _client_with_alice(settings) as client:
        statuses = [_login(client).status_code for _ in range(4)]
        assert statuses == [200, 200, 429, 429]

        resp = _login(client)
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert resp.headers["Retry-After"] == "60"


def test_retry_after_follows_the_window(settings_factory) -> None:
    settings = settings_factory("rate_hourly", rate_limit_enabled=True, login_rate_limit="1/hour")
    with _client_with_alice(settings) as client:
        assert _login(client).status_code == 200
        resp = _login(client)
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "3600"


def test_apps_do_not_share_counters_or_settings(settings_factory) -> None:
    """An exhausted limit in one app leaves a second app untouched."""
    tight_settings = settings_factory("rate_tight", rate_limit_enabled=True, login_rate_limit="1/minute")
    loose_settings = settings_factory("rate_loose", rate_limit_enabled=False)
    with _client_with_alice(tight_settings) as tight, _client_with_alice(loose_settings) as loose:
        assert _login(tight).status_code == 200
        assert _login(tight).status_code == 429
        assert [_login(loose).status_code for _ in range(3)] == [200, 200, 200]
        assert _login(tight).status_code == 429


def test_other_routes_are_not_limited(settings_factory) -> None:
    settings = settings_factory("rate_other", rate_limit_enabled=True, login_rate_limit="1/minute")
    with _client_with_alice(settings) as client:
        assert all(client.get("/api/v1/roles").status_code == 200 for _ in range(3))


def test_unhandled_error_is_logged(settings_factory, caplog) -> None:
    """A request that ends in a 500 still gets its access log line."""
    app = create_app(settings_factory("rate_logging"))

    def boom() -> dict:
        raise RuntimeError("kaboom")

    app.add_api_route("/api/v1/boom", boom, methods=["GET"])
    caplog.set_level(logging.INFO, logger="rolekeeper.api")
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/api/v1/boom")

    assert resp.status_code == 500
    assert any("GET /api/v1/boom 500" in r.getMessage() for r in caplog.records)
