"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against a live store
  - No session cookie required
  - One access-log line per request, failed ones included
"""

from __future__ import annotations

import logging

import pytest


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_reports_database_error(client, user_store, monkeypatch):
    monkeypatch.setattr(user_store, "ping", lambda: False)
    data = client.get("/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_health_no_auth_required(client):
    """Health endpoint is accessible without any cookies."""
    client.cookies.clear()
    assert client.get("/health").status_code == 200


def test_request_is_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger="accounts.api"):
        client.get("/health")
    assert any("GET /health 200" in r.getMessage() for r in caplog.records)


def test_failed_request_is_still_logged(client, user_store, monkeypatch, caplog):
    def _boom():
        raise RuntimeError("ping exploded")

    monkeypatch.setattr(user_store, "ping", _boom)
    with caplog.at_level(logging.INFO, logger="accounts.api"):
        with pytest.raises(RuntimeError):
            client.get("/health")
    assert any("GET /health 500" in r.getMessage() for r in caplog.records)
