"""Accounts, sign-in state and route guards.

The signed-in user is kept in the Flask session as ``session["user"]``
(id, email, role) and re-read from the database once per request into
``flask.g``, so a role change made by an admin is picked up on the user's
next request rather than at their next sign-in.
"""
from functools import wraps

from flask import current_app, g, session
from werkzeug.security import check_password_hash, generate_password_hash

from . import signals
from .database import db
from .errors import AuthenticationError, Conflict, NotFound, PermissionDenied, ValidationError
from .mailer import send_confirmation_email
from .models import Profile, User, utcnow
from .tokens import verify_confirmation_token
from .validation import as_text

MIN_PASSWORD_LENGTH = 6


def _normalize_email(email) -> str:
    return (as_text(email) or "").lower()


def _password(value) -> str:
    return value if isinstance(value, str) else ""


def sign_up(email: str, password: str, full_name: str) -> User:
    """Create an account and its profile; the caller sends the confirmation email."""
    email = _normalize_email(email)
    full_name = as_text(full_name)
    password = _password(password)

    if not email or "@" not in email:
        raise ValidationError("A valid email address is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if not full_name:
        raise ValidationError("Full name is required.")
    if User.query.filter_by(email=email).first():
        raise Conflict("Email already registered")

    user = User(email=email, password_hash=generate_password_hash(password))
    if not current_app.config["REQUIRE_EMAIL_CONFIRMATION"]:
        user.email_confirmed_at = utcnow()
    db.session.add(user)
    db.session.flush()
    db.session.add(Profile(user_id=user.id, full_name=full_name, email=email, role="user"))
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("New account %s", user.id)
    return user


def confirm_email(token: str) -> User:
    data = verify_confirmation_token(token or "")
    if not data:
        raise ValidationError("Confirmation link is invalid or has expired.")
    user = db.session.get(User, data["user_id"])
    if not user or user.email != data.get("email"):
        raise NotFound("Account not found.")
    if user.email_confirmed_at is None:
        user.email_confirmed_at = utcnow()
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
    return user


def find_unconfirmed(email: str) -> User:
    user = User.query.filter_by(email=_normalize_email(email)).first()
    if not user:
        raise NotFound("Account not found.")
    if user.email_confirmed_at is not None:
        raise Conflict("Email address is already confirmed.")
    return user


def resend_confirmation(email: str) -> User:
    user = find_unconfirmed(email)
    send_confirmation_email(user)
    return user


def sign_in(email: str, password: str) -> User:
    user = User.query.filter_by(email=_normalize_email(email)).first()
    if not user or not check_password_hash(user.password_hash, _password(password)):
        raise AuthenticationError("Invalid credentials")
    if current_app.config["REQUIRE_EMAIL_CONFIRMATION"] and user.email_confirmed_at is None:
        raise AuthenticationError("Please confirm your email address before signing in.")

    session.clear()
    session["user"] = {"id": user.id, "email": user.email, "role": user.profile.role}
    g.user = user
    g.profile = user.profile
    signals.user_signed_in.send(current_app._get_current_object(), user_id=user.id, role=user.profile.role)
    return user


def sign_out():
    user_id = (session.get("user") or {}).get("id")
    session.pop("user", None)
    g.user = None
    g.profile = None
    if user_id:
        signals.user_signed_out.send(current_app._get_current_object(), user_id=user_id)


def load_current_user():
    """before_request hook: resolve the session user into ``g``."""
    g.user = None
    g.profile = None
    data = session.get("user")
    if not data:
        return
    user = db.session.get(User, data.get("id"))
    if user is None:
        # Account vanished; drop the stale cookie
        session.pop("user", None)
        return
    g.user = user
    g.profile = user.profile
    if user.profile and data.get("role") != user.profile.role:
        session["user"] = dict(data, role=user.profile.role)


def current_user():
    return g.get("user")


def current_profile():
    return g.get("profile")


def current_role():
    profile = current_profile()
    return profile.role if profile else None


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            raise AuthenticationError("Sign in required")
        return view(*args, **kwargs)
    return wrapped


def role_required(*roles):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if current_user() is None:
                raise AuthenticationError("Sign in required")
            if current_role() not in roles:
                raise PermissionDenied("Insufficient permissions")
            return view(*args, **kwargs)
        return wrapped
    return decorator


def _log_sign_in(sender, user_id, role, **extra):
    sender.logger.info("User %s signed in as %s", user_id, role)


def _log_sign_out(sender, user_id, **extra):
    sender.logger.info("User %s signed out", user_id)


def _log_profile_update(sender, profile, changed, **extra):
    sender.logger.info("Profile of %s updated: %s", profile["user_id"], ", ".join(changed) or "no changes")


def connect_signals(app):
    signals.user_signed_in.connect(_log_sign_in, sender=app)
    signals.user_signed_out.connect(_log_sign_out, sender=app)
    signals.profile_updated.connect(_log_profile_update, sender=app)
