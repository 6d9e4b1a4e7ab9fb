"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status and version
  - No authentication required
"""

from __future__ import annotations

from api.main import API_VERSION


def test_health_returns_status_and_version(api_client):
    resp = api_client.client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": API_VERSION}


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_health_ignores_bad_token(api_client):
    resp = api_client.client.get("/api/health", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 200
