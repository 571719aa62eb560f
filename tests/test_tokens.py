"""
Tests for signed, expiring email tokens.
"""

from circlehub.tokens import (
    generate_confirmation_token,
    generate_review_token,
    verify_confirmation_token,
    verify_review_token,
)


def test_review_token_carries_decision(app):
    token = generate_review_token("venues", "sub-1", "approve", "admin-1")
    data = verify_review_token(token)
    assert data["domain"] == "venues"
    assert data["submission_id"] == "sub-1"
    assert data["action"] == "approve"
    assert data["reviewer_id"] == "admin-1"


def test_tampered_token_is_rejected(app):
    token = generate_review_token("venues", "sub-1", "reject", "admin-1")
    assert verify_review_token(token[:-2] + "xx") is None


def test_expired_token_is_rejected(app):
    app.config["REVIEW_LINK_TTL"] = -1
    token = generate_review_token("venues", "sub-1", "approve", "admin-1")
    assert verify_review_token(token) is None


def test_token_kinds_do_not_mix(app):
    confirmation = generate_confirmation_token("user-1", "a@example.com")
    assert verify_review_token(confirmation) is None
    assert verify_confirmation_token(confirmation)["email"] == "a@example.com"


def test_other_secret_key_is_rejected(app):
    token = generate_confirmation_token("user-1", "a@example.com")
    app.config["SECRET_KEY"] = "rotated"
    assert verify_confirmation_token(token) is None
