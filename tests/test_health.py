"""
tests/test_health.py -- Liveness endpoints.

Covers:
  - GET /api/health returns status and version
  - GET / answers with the plain-text "API Working" banner
  - Neither needs a session cookie
"""

from __future__ import annotations

from api.main import __version__


def test_health_returns_status_and_version(api_client):
    client, _, _ = api_client
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": __version__}


def test_root_banner(api_client):
    client, _, _ = api_client
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "API Working"
    assert resp.headers["content-type"].startswith("text/plain")


def test_liveness_needs_no_session(api_client):
    """Both endpoints answer with an empty cookie jar."""
    client, _, _ = api_client
    assert not client.cookies.get("token")
    assert client.get("/api/health").json()["status"] == "ok"
    assert client.get("/").status_code == 200
