"""
Shared pytest fixtures for the University Dashboard test suite.

Provides:
    - app: Flask application (session-scoped, in-memory SQLite)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - view / university / column: Pre-created entities via the API
"""

import pytest

from unidash import create_app
from unidash.models import db as _db


API = "/api/v1"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


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
        app.extensions.pop("ai_gateway", None)
        yield
        app.extensions.pop("ai_gateway", None)
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def university(client):
    """MIT, created via the API."""
    res = client.post(
        f"{API}/universities",
        json={
            "name": "MIT",
            "country": "US",
            "state": "Massachusetts",
            "city": "Cambridge",
            "type": "Private",
            "website": "https://www.mit.edu",
        },
    )
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def view(client):
    """A view created as a copy of nothing: it carries the starter columns."""
    res = client.post(f"{API}/views", json={"name": "General"})
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def empty_view():
    """A view with no columns, created directly on the model."""
    from unidash.models.sheet import View

    v = View(name="Blank")
    _db.session.add(v)
    _db.session.commit()
    return v.to_dict()
