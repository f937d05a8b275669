"""
tests/conftest.py -- Shared test fixtures for the Portfolio API tests.

This module provides:
  - make_database(): an isolated named shared-memory SQLite Database
  - FakeRenderer / FakeGoogleVerifier: stand-ins for Chromium and Google JWKS
  - _patch_lifespan(): wires test stores and fakes into app.state, bypassing real startup
  - api: module-scoped ApiHarness (TestClient plus admin and user tokens)
  - db / services: per-test stores and lifecycle services for unit tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and RATE_LIMIT_ENABLED must be set before any app module import:
get_settings() is cached on first call and api.limiter reads it at import.
"""

from __future__ import annotations

import itertools
import os
import re
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set before any auth/core/api import so get_settings() auto-generates
# signing keys in dev mode and the limiter starts disabled.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, attach_services
from auth.google import GoogleProfile
from auth.models import Identity, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.database import Database
from core.errors import AuthInvalidError, RenderFailedError
from core.models import ROLE_ADMIN, ROLE_USER
from portfolio.lifecycle import BlogService, ProjectService, ResumeService
from portfolio.store import ContentStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass123"
USER_EMAIL = "user@example.com"
USER_PASSWORD = "userpass123"

_db_counter = itertools.count()


# ---------------------------------------------------------------------------
# Database helpers
# ---------------------------------------------------------------------------


def make_database(name: str) -> Database:
    """Create an isolated named shared-memory SQLite Database.

    Args:
        name: Unique string for the DB name so test modules (and tests) don't
              share state.
    """
    unique = "%s_%d" % (re.sub(r"\W", "_", name), next(_db_counter))
    return Database(f"sqlite:///file:test_{unique}?mode=memory&cache=shared&uri=true").connect()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeRenderer:
    """Async stand-in for ResumeRenderer. Records what it rendered."""

    def __init__(self) -> None:
        self.rendered: list[int] = []
        self.fail = False

    async def render_pdf(self, resume) -> bytes:
        if self.fail:
            raise RenderFailedError()
        self.rendered.append(resume.id)
        return b"%PDF-1.4\n% fake " + resume.title.encode("utf-8")


class FakeGoogleVerifier:
    """Maps opaque test tokens to Google profiles; any other token is rejected."""

    enabled = True

    def __init__(self) -> None:
        self.profiles: dict[str, GoogleProfile] = {}

    def add(self, token: str, sub: str, email: str, name: str = "Google Person", picture: str | None = None) -> None:
        self.profiles[token] = GoogleProfile(sub=sub, email=email, name=name, picture=picture)

    def verify(self, id_token: str) -> GoogleProfile:
        profile = self.profiles.get(id_token)
        if profile is None:
            raise AuthInvalidError("Invalid Google token")
        return profile


def _patch_lifespan(db: Database, renderer: FakeRenderer, google: FakeGoogleVerifier):
    """Return an async context manager that replaces the real lifespan.

    Wires the test database and fakes into app.state so TestClient routes see
    isolated stores and never launch a browser or call Google.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        attach_services(app, db, renderer=renderer, google_verifier=google)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# API harness -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    client: TestClient
    db: Database
    admin_id: int
    user_id: int
    admin_token: str
    user_token: str
    renderer: FakeRenderer
    google: FakeGoogleVerifier

    @property
    def admin(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.admin_token}"}

    @property
    def user(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.user_token}"}

    def register(self, name: str, email: str, password: str = "password123") -> tuple[int, dict[str, str]]:
        """Register through the API and return (user_id, auth headers)."""
        resp = self.client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["user"]["id"], {"Authorization": f"Bearer {data['accessToken']}"}


@pytest.fixture(scope="module")
def api(request) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, middleware and exception handlers against an
    isolated in-memory database. One ADMIN and one USER account are created
    before the client starts; their access tokens are long-lived.
    """
    db = make_database(request.module.__name__.rsplit(".", 1)[-1])
    user_store = UserStore(db)
    admin_id = user_store.create_user(
        User(
            name="Test Admin",
            email=ADMIN_EMAIL,
            hashed_password=hash_password(ADMIN_PASSWORD),
            role=ROLE_ADMIN,
            email_verified=True,
        )
    )
    user_id = user_store.create_user(
        User(
            name="Test User",
            email=USER_EMAIL,
            hashed_password=hash_password(USER_PASSWORD),
            role=ROLE_USER,
            email_verified=True,
        )
    )
    renderer = FakeRenderer()
    google = FakeGoogleVerifier()

    app.router.lifespan_context = _patch_lifespan(db, renderer, google)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(
            client=client,
            db=db,
            admin_id=admin_id,
            user_id=user_id,
            admin_token=create_access_token(admin_id, ADMIN_EMAIL, ROLE_ADMIN, expire_seconds=3600),
            user_token=create_access_token(user_id, USER_EMAIL, ROLE_USER, expire_seconds=3600),
            renderer=renderer,
            google=google,
        )

    db.close()


# ---------------------------------------------------------------------------
# Unit-test fixtures -- fresh database per test
# ---------------------------------------------------------------------------


@dataclass
class Services:
    users: UserStore
    content: ContentStore
    blogs: BlogService
    projects: ProjectService
    resumes: ResumeService
    admin: Identity
    alice: Identity
    bob: Identity


@pytest.fixture
def db(request) -> Generator[Database, None, None]:
    database = make_database(request.node.name)
    yield database
    database.close()


@pytest.fixture
def services(db: Database) -> Services:
    """Stores and services over a fresh database with one admin and two users."""
    users = UserStore(db)
    content = ContentStore(db)

    def _make(name: str, email: str, role: str) -> Identity:
        uid = users.create_user(User(name=name, email=email, role=role, email_verified=True))
        return Identity(id=uid, email=email, role=role)

    return Services(
        users=users,
        content=content,
        blogs=BlogService(content),
        projects=ProjectService(content),
        resumes=ResumeService(content),
        admin=_make("Admin", "admin@example.com", ROLE_ADMIN),
        alice=_make("Alice", "alice@example.com", ROLE_USER),
        bob=_make("Bob", "bob@example.com", ROLE_USER),
    )
