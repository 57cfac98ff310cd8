"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against a live store
  - No CSRF token, bearer token, or rate-limit slot required
"""

from __future__ import annotations

from unittest.mock import patch

from sqlalchemy.exc import OperationalError


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_guards(api_client):
    """No cookies or headers: the guard chain does not apply to /health."""
    resp = api_client.get("/health", headers={})
    assert resp.status_code == 200


def test_health_not_rate_limited(api_client):
    for _ in range(101):
        assert api_client.get("/health").status_code == 200
    assert api_client.get("/csrf-token").status_code == 200


def test_health_reports_database_error(api_client):
    """A failing ping marks the database component as 'error' but keeps 200."""
    store = api_client.app.state.user_store
    with patch.object(store, "ping", side_effect=OperationalError("SELECT 1", {}, Exception("down"))):
        resp = api_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["components"]["database"] == "error"
