"""
Tests for sign-up, confirmation, sign-in and the route guards.
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from circlehub.auth import confirm_email
from circlehub.database import db
from circlehub.models import Profile, User
from circlehub.tokens import generate_confirmation_token

from conftest import PASSWORD


def _signup(client, email="new@example.com", password=PASSWORD, full_name="New Person"):
    return client.post("/auth/signup", json={"email": email, "password": password, "full_name": full_name})


# =============================================================================
# Sign-up
# =============================================================================

def test_signup_creates_user_and_profile(client):
    resp = _signup(client, email="New@Example.com ")
    assert resp.status_code == 201

    user = User.query.filter_by(email="new@example.com").first()
    assert user is not None
    assert user.password_hash != PASSWORD
    assert user.profile.role == "user"
    assert user.profile.full_name == "New Person"


def test_duplicate_email_conflicts(client):
    _signup(client)
    resp = _signup(client)
    assert resp.status_code == 409
    assert resp.get_json() == {"error": "Email already registered"}


def test_short_password_rejected(client):
    resp = _signup(client, password="123")
    assert resp.status_code == 400
    assert User.query.count() == 0


# =============================================================================
# Sign-in and session
# =============================================================================

def test_signin_and_me(client):
    _signup(client)
    resp = client.post("/auth/signin", json={"email": "new@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["role"] == "user"

    me = client.get("/auth/me").get_json()
    assert me["user"]["email"] == "new@example.com"
    assert me["profile"]["full_name"] == "New Person"


def test_wrong_password(client):
    _signup(client)
    resp = client.post("/auth/signin", json={"email": "new@example.com", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid credentials"


def test_signout_clears_session(make_user, login):
    client = login(make_user())
    assert client.post("/auth/signout").status_code == 200
    assert client.get("/auth/me").get_json() == {"user": None, "profile": None}
    assert client.get("/profile").status_code == 401


def test_role_change_seen_on_next_request(make_user, login):
    """The session role follows the profile without signing in again."""
    user = make_user()
    client = login(user)
    assert client.get("/manage-events").status_code == 403

    Profile.query.filter_by(user_id=user.id).first().role = "facilitator"
    db.session.commit()

    assert client.get("/manage-events").status_code == 200
    with client.session_transaction() as session:
        assert session["user"]["role"] == "facilitator"


# =============================================================================
# Email confirmation
# =============================================================================

def test_unconfirmed_account_cannot_sign_in(app, client):
    app.config["REQUIRE_EMAIL_CONFIRMATION"] = True
    _signup(client)
    resp = client.post("/auth/signin", json={"email": "new@example.com", "password": PASSWORD})
    assert resp.status_code == 401

    user = User.query.filter_by(email="new@example.com").first()
    token = generate_confirmation_token(user.id, user.email)
    assert client.get(f"/email-confirmation?token={token}").status_code == 200

    resp = client.post("/auth/signin", json={"email": "new@example.com", "password": PASSWORD})
    assert resp.status_code == 200


def test_resend_only_for_unconfirmed(app, client):
    app.config["REQUIRE_EMAIL_CONFIRMATION"] = True
    _signup(client)
    assert client.post("/auth/resend", json={"email": "new@example.com"}).status_code == 200
    assert client.post("/auth/resend", json={"email": "ghost@example.com"}).status_code == 404

    app.config["REQUIRE_EMAIL_CONFIRMATION"] = False
    _signup(client, email="done@example.com")
    assert client.post("/auth/resend", json={"email": "done@example.com"}).status_code == 409


def test_bad_confirmation_token(client):
    assert client.get("/email-confirmation?token=garbage").status_code == 400
    assert client.get("/email-confirmation").status_code == 400


# =============================================================================
# Guards and errors
# =============================================================================

def test_guards(client, make_user, login):
    assert client.get("/admin/users").status_code == 401
    assert login(make_user()).get("/admin/users").status_code == 403
    assert login(make_user("facilitator")).get("/admin/users").status_code == 403
    assert login(make_user("admin")).get("/admin/users").status_code == 200


def test_unknown_path_is_json_404(client):
    resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_non_string_credentials(client):
    _signup(client)
    resp = client.post("/auth/signin", json={"email": 5, "password": 5})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid credentials"

    resp = client.post("/auth/signin", json={"email": "new@example.com", "password": 123456})
    assert resp.status_code == 401

    resp = client.post("/auth/signup", json={"email": 5, "password": 1234567, "full_name": 7})
    assert resp.status_code == 400


def test_failed_confirmation_leaves_account_unconfirmed(app, client, monkeypatch):
    app.config["REQUIRE_EMAIL_CONFIRMATION"] = True
    _signup(client)
    user = User.query.filter_by(email="new@example.com").first()
    token = generate_confirmation_token(user.id, user.email)

    def failing_commit(session):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(type(db.session()), "commit", failing_commit)
    with pytest.raises(SQLAlchemyError):
        confirm_email(token)
    monkeypatch.undo()

    assert db.session.get(User, user.id).email_confirmed_at is None
