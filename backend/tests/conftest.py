"""Shared fixtures: in-memory database, API client, and user/course factories."""

import itertools
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms.config import settings
from lms.database import Base, get_db
from lms.main import app
from lms.middleware.auth import create_access_token, to_context
from lms.middleware.rate_limit import limiter
from lms.models.course import Course
from lms.permissions import Role
from lms.services import auth_service

DEFAULT_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point uploads at a temp dir and switch rate limiting off."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role=Role.STUDENT, name=None, email=None, password=DEFAULT_PASSWORD):
        n = next(counter)
        return auth_service.register(
            db,
            email or f"{role.value.lower()}{n}@example.com",
            password,
            name or f"{role.value.title()} {n}",
            forced_role=role,
        )

    return _make


@pytest.fixture
def make_course(db):
    def _make(title="Beginner Japanese", teachers=(), active=True):
        course = Course(title=title, description=f"{title} course", active=active, teachers=list(teachers))
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make


def ctx(user):
    """Acting context for calling services directly."""
    return to_context(user)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}
