"""Tests for registration, login, tokens and password reset."""

import pytest
import sys
import os
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from jose import jwt

from conftest import DEFAULT_PASSWORD, auth_headers
from lms.config import settings
from lms.errors import Conflict, Unauthenticated, ValidationError
from lms.middleware.auth import authenticate, create_access_token, hash_password, verify_password
from lms.models.user import User
from lms.permissions import Role
from lms.services import auth_service

LONG_PASSWORD = "x" * 100


class TestRegistration:
    """Test self-registration."""

    def test_register_returns_token_and_student(self, client):
        """A new account is created as a STUDENT and gets a token."""
        res = client.post("/api/auth/register", json={
            "email": "alice@example.com", "password": "secret1", "name": "Alice",
        })
        assert res.status_code == 201
        body = res.json()
        assert body["token"]
        assert body["user"]["role"] == "STUDENT"
        assert body["user"]["email"] == "alice@example.com"

    def test_role_in_payload_is_ignored(self, client):
        """Self-registration cannot pick a privileged role."""
        res = client.post("/api/auth/register", json={
            "email": "mallory@example.com", "password": "secret1", "name": "Mallory", "role": "ADMIN",
        })
        assert res.status_code == 201
        assert res.json()["user"]["role"] == "STUDENT"

    def test_duplicate_email_conflicts(self, client, make_user):
        """Registering an existing email returns 409."""
        make_user(email="bob@example.com")
        res = client.post("/api/auth/register", json={
            "email": "bob@example.com", "password": "secret1", "name": "Bob",
        })
        assert res.status_code == 409
        assert res.json() == {"error": "User already exists"}

    def test_email_is_case_insensitive(self, db, make_user):
        """Emails are normalised before uniqueness checks."""
        make_user(email="carol@example.com")
        with pytest.raises(Conflict):
            auth_service.register(db, "Carol@Example.com", "secret1", "Carol")

    def test_missing_fields_rejected(self, db):
        """Blank name is a validation error."""
        with pytest.raises(ValidationError):
            auth_service.register(db, "dave@example.com", "secret1", "  ")

    def test_password_is_hashed(self, db, make_user):
        """The stored hash is never the raw password."""
        user = make_user()
        assert user.password_hash != DEFAULT_PASSWORD
        assert verify_password(DEFAULT_PASSWORD, user.password_hash)

    def test_overlong_password_rejected(self, client, db):
        """Passwords beyond the 72 byte bcrypt limit are a 400, not a crash."""
        res = client.post("/api/auth/register", json={
            "email": "long@example.com", "password": LONG_PASSWORD, "name": "Long",
        })
        assert res.status_code == 400
        assert "at most 72 bytes" in res.json()["error"]
        assert db.query(User).count() == 0

    def test_racing_duplicate_hits_unique_index(self, db, make_user, monkeypatch):
        """A duplicate that slips past the lookup still conflicts and leaves the session usable."""
        make_user(email="race@example.com")
        monkeypatch.setattr(auth_service, "_find_by_email", lambda db, email: None)
        with pytest.raises(Conflict, match="User already exists"):
            auth_service.register(db, "race@example.com", "secret1", "Racer")

        assert db.query(User).filter(User.email == "race@example.com").count() == 1
        other = auth_service.register(db, "other@example.com", "secret1", "Other")
        assert other.id


class TestLogin:
    """Test credential checks."""

    def test_login_success(self, client, make_user):
        """Valid credentials return a usable token."""
        user = make_user(email="erin@example.com")
        res = client.post("/api/auth/login", json={"email": "erin@example.com", "password": DEFAULT_PASSWORD})
        assert res.status_code == 200
        token = res.json()["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["id"] == user.id

    def test_wrong_password_and_unknown_email_look_the_same(self, client, make_user):
        """Login failures do not reveal whether the email exists."""
        make_user(email="frank@example.com")
        wrong = client.post("/api/auth/login", json={"email": "frank@example.com", "password": "nope"})
        unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "nope"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"error": "Invalid credentials"}

    def test_token_claims(self, make_user):
        """Tokens carry id, email and role and do not expire by default."""
        user = make_user(role=Role.TEACHER)
        claims = jwt.decode(create_access_token(user), settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert claims["id"] == user.id
        assert claims["email"] == user.email
        assert claims["role"] == "TEACHER"
        assert "exp" not in claims


    def test_overlong_password_is_invalid_credentials(self, client, make_user):
        """An overlong password fails login like any wrong password."""
        make_user(email="long@example.com")
        res = client.post("/api/auth/login", json={"email": "long@example.com", "password": LONG_PASSWORD})
        assert res.status_code == 401
        assert res.json() == {"error": "Invalid credentials"}
        assert verify_password(LONG_PASSWORD, hash_password(DEFAULT_PASSWORD)) is False


class TestTokenVerification:
    """Test the bearer-token pipeline."""

    def test_missing_token(self, client):
        """No header is a 401."""
        res = client.get("/api/auth/me")
        assert res.status_code == 401
        assert res.json() == {"error": "Access token required"}

    def test_garbage_token(self, client):
        """A token that fails signature verification is a 401."""
        res = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401
        assert res.json() == {"error": "Invalid token"}

    def test_token_without_id(self, db):
        """A signed token without an id claim is rejected."""
        token = jwt.encode({"email": "x@example.com"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        with pytest.raises(Unauthenticated, match="Invalid token payload"):
            authenticate(db, token)

    def test_deleted_user_token_rejected(self, client, db, make_user):
        """A still-valid signature for a deleted user is refused."""
        user = make_user()
        headers = auth_headers(user)
        assert client.get("/api/auth/me", headers=headers).status_code == 200

        db.delete(user)
        db.commit()

        res = client.get("/api/auth/me", headers=headers)
        assert res.status_code == 401
        assert res.json() == {"error": "User not found"}

    def test_role_comes_from_store_not_token(self, db, make_user):
        """A role change takes effect on the next request."""
        user = make_user(role=Role.TEACHER)
        token = create_access_token(user)
        user.role = Role.HEAD.value
        db.commit()
        assert authenticate(db, token).role == Role.HEAD


class TestPasswordReset:
    """Test the reset-token flow."""

    def test_forgot_password_is_enumeration_safe(self, client, make_user):
        """Known and unknown emails get byte-identical responses."""
        make_user(email="heidi@example.com")
        known = client.post("/api/auth/forgot-password", json={"email": "heidi@example.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.content == unknown.content

    def test_reset_flow(self, client, db, make_user):
        """A fresh token resets the password once."""
        user = make_user(email="ivan@example.com")
        auth_service.request_reset(db, "ivan@example.com")
        db.refresh(user)
        token = user.reset_token
        assert token and len(token) == 64

        res = client.post("/api/auth/reset-password", json={"token": token, "new_password": "brandnew"})
        assert res.status_code == 200

        login = client.post("/api/auth/login", json={"email": "ivan@example.com", "password": "brandnew"})
        assert login.status_code == 200

        again = client.post("/api/auth/reset-password", json={"token": token, "new_password": "another1"})
        assert again.status_code == 400
        assert again.json() == {"error": "Invalid or expired reset token"}

    def test_expired_token_rejected(self, db, make_user):
        """Tokens past their expiry cannot be used."""
        user = make_user(email="judy@example.com")
        auth_service.request_reset(db, "judy@example.com")
        db.refresh(user)
        user.reset_token_expiry = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()

        with pytest.raises(ValidationError, match="Invalid or expired"):
            auth_service.reset_password(db, user.reset_token, "brandnew")

    def test_short_password_rejected(self, db, make_user):
        """New passwords must meet the minimum length."""
        user = make_user(email="ken@example.com")
        auth_service.request_reset(db, "ken@example.com")
        db.refresh(user)
        with pytest.raises(ValidationError, match="at least"):
            auth_service.reset_password(db, user.reset_token, "abc")

    def test_overlong_new_password_rejected(self, client, db, make_user):
        """Reset and change both refuse passwords bcrypt cannot hash."""
        user = make_user(email="long@example.com")
        auth_service.request_reset(db, "long@example.com")
        db.refresh(user)
        res = client.post("/api/auth/reset-password", json={"token": user.reset_token, "new_password": LONG_PASSWORD})
        assert res.status_code == 400
        assert "at most 72 bytes" in res.json()["error"]

        res = client.post("/api/auth/change-password", headers=auth_headers(user),
                          json={"current_password": DEFAULT_PASSWORD, "new_password": LONG_PASSWORD})
        assert res.status_code == 400
        db.refresh(user)
        assert verify_password(DEFAULT_PASSWORD, user.password_hash)

    def test_change_password(self, client, db, make_user):
        """Changing the password requires the current one."""
        user = make_user()
        headers = auth_headers(user)
        bad = client.post("/api/auth/change-password", headers=headers,
                          json={"current_password": "wrong", "new_password": "newpass1"})
        assert bad.status_code == 401

        ok = client.post("/api/auth/change-password", headers=headers,
                         json={"current_password": DEFAULT_PASSWORD, "new_password": "newpass1"})
        assert ok.status_code == 200
        db.refresh(user)
        assert verify_password("newpass1", user.password_hash)
