"""
Pytest configuration: a fresh app on an in-memory database per test.

The ``app`` fixture keeps an application context pushed for the whole test,
so service functions can be called directly and test-client requests share
the same database session.
"""

import itertools
from datetime import date, timedelta

import pytest
from werkzeug.security import generate_password_hash

from circlehub import create_app
from circlehub.database import db
from circlehub.models import Event, Profile, User, utcnow

PASSWORD = "secret123"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "MAIL_SERVER": "",
        "BASE_URL": "http://localhost",
        "REQUIRE_EMAIL_CONFIRMATION": False,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory for confirmed accounts with a given role."""
    counter = itertools.count(1)

    def _make(role="user", full_name=None, email=None, **profile_fields):
        n = next(counter)
        email = email or f"{role}{n}@example.com"
        user = User(email=email, password_hash=generate_password_hash(PASSWORD),
                    email_confirmed_at=utcnow())
        db.session.add(user)
        db.session.flush()
        db.session.add(Profile(user_id=user.id, full_name=full_name or f"{role.title()} {n}",
                               email=email, role=role, **profile_fields))
        db.session.commit()
        return user

    return _make


@pytest.fixture
def login(app):
    """Sign ``user`` in on a new test client and return that client."""
    def _login(user):
        client = app.test_client()
        resp = client.post("/auth/signin", json={"email": user.email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return client

    return _login


@pytest.fixture
def make_event(app):
    def _make(facilitator, days_ahead=30, max_participants=20, **fields):
        event = Event(
            title=fields.pop("title", "Practice evening"),
            date=date.today() + timedelta(days=days_ahead),
            time=fields.pop("time", "19:00"),
            location=fields.pop("location", "Community hall"),
            type=fields.pop("type", "group_session"),
            max_participants=max_participants,
            facilitator_id=facilitator.id,
            **fields,
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make
