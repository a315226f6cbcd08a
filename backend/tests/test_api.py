"""Tests for the HTTP surface: health, error shapes and route wiring."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import auth_headers
from lms.permissions import Role


class TestHealth:
    """Test unauthenticated endpoints."""

    def test_health(self, client):
        """Health reports ok with a timestamp."""
        res = client.get("/health")
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "ok"
        assert "timestamp" in body


class TestErrorShape:
    """Test that every failure is rendered as {"error": ...}."""

    def test_request_validation_is_400(self, client):
        """Malformed bodies are 400 with a message and details."""
        res = client.post("/api/auth/register", json={"email": "not-an-email", "password": "x"})
        assert res.status_code == 400
        body = res.json()
        assert "email" in body["error"]
        assert {d["field"] for d in body["details"]} >= {"email", "name"}

    def test_unknown_route_is_404(self, client):
        """Routing misses use the same error key."""
        res = client.get("/api/nothing-here")
        assert res.status_code == 404
        assert "error" in res.json()

    def test_forbidden_shape(self, client, make_user):
        """Role failures include the required and actual roles."""
        res = client.get("/api/reports/overview", headers=auth_headers(make_user(Role.STUDENT)))
        assert res.status_code == 403
        assert res.json() == {
            "error": "Insufficient permissions",
            "required_roles": ["ADMIN", "MANAGEMENT"],
            "user_role": "STUDENT",
        }

    def test_unauthenticated_before_forbidden(self, client):
        """Without a token, the caller is told to authenticate first."""
        res = client.get("/api/reports/overview")
        assert res.status_code == 401
