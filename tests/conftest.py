"""
Shared pytest fixtures for the Advocacy Hub test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_profile / make_congress: ORM factories
    - auth_headers: Bearer headers for a profile
    - login_as: put an identity on ``g`` for direct service calls
"""

import uuid

import pytest
from flask import g

from advocacy import create_app
from advocacy.models import db as _db
from advocacy.models.auth import Profile
from advocacy.models.congress import CongressEvent
from advocacy.services.jwt_service import generate_access_token
from advocacy.services.permission_service import invalidate_all_cache


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        # Tables are recreated per test and ids are reused; start every test
        # with an empty decision cache.
        invalidate_all_cache()
        yield
        invalidate_all_cache()
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


def _make_profile(role="PatientAdvocate", email=None, name=None):
    profile = Profile(
        id=str(uuid.uuid4()),
        email=email or f"{uuid.uuid4().hex[:8]}@advocacy.test",
        name=name or "Test User",
        role=role,
    )
    _db.session.add(profile)
    _db.session.commit()
    return profile


def _make_congress(status="planning", title="European Congress", year=2026):
    event = CongressEvent(title=title, year=year, status=status, location="Brussels")
    _db.session.add(event)
    _db.session.commit()
    return event


@pytest.fixture()
def make_profile():
    return _make_profile


@pytest.fixture()
def make_congress():
    return _make_congress


@pytest.fixture()
def admin(make_profile):
    return make_profile(role="PlatformAdmin", email="admin@advocacy.test", name="Admin")


@pytest.fixture()
def advocate(make_profile):
    return make_profile(role="PatientAdvocate", email="advocate@advocacy.test", name="Advocate")


@pytest.fixture()
def auth_headers():
    """Return a function building Bearer headers for a profile."""
    def _headers(profile, session_id=None):
        token = generate_access_token(profile.id, profile.email, session_id=session_id)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
def login_as():
    """Set the request identity used by admin actions called directly."""
    def _login(profile, session_id="test-session"):
        g.current_user_id = profile.id if profile is not None else None
        g.current_user_email = profile.email if profile is not None else None
        g.session_id = session_id
    return _login
