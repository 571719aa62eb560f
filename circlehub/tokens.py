import time  # token expiration

from flask import current_app
from itsdangerous import URLSafeSerializer, BadSignature

REVIEW_SALT = "circlehub-review-actions"
CONFIRM_SALT = "circlehub-email-confirmation"


def _serializer(salt: str) -> URLSafeSerializer:
    return URLSafeSerializer(current_app.config["SECRET_KEY"], salt=salt)


def _dumps(salt: str, payload: dict, expires_in: int) -> str:
    payload = dict(payload, exp=int(time.time()) + expires_in)
    return _serializer(salt).dumps(payload)


def _loads(salt: str, token: str):
    try:
        data = _serializer(salt).loads(token)
    except BadSignature:
        return None  # invalid or tampered with
    if data.get("exp", 0) < time.time():
        return None  # expired
    return data


def generate_review_token(domain: str, submission_id: str, action: str, reviewer_id: str) -> str:
    """Signed one-click approve/reject link payload for an admin email."""
    payload = {
        "domain": domain,
        "submission_id": submission_id,
        "action": action,
        "reviewer_id": reviewer_id,
    }
    return _dumps(REVIEW_SALT, payload, current_app.config["REVIEW_LINK_TTL"])


def verify_review_token(token: str):
    return _loads(REVIEW_SALT, token)


def generate_confirmation_token(user_id: str, email: str) -> str:
    payload = {"user_id": user_id, "email": email}
    return _dumps(CONFIRM_SALT, payload, current_app.config["CONFIRMATION_TOKEN_TTL"])


def verify_confirmation_token(token: str):
    return _loads(CONFIRM_SALT, token)
