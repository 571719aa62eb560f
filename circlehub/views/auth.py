from flask import Blueprint, jsonify, request

from .. import auth
from ..errors import ValidationError
from ..mailer import send_confirmation_email
from . import payload

bp = Blueprint("auth", __name__)


@bp.route("/auth/signup", methods=["POST"])
def signup():
    data = payload()
    user = auth.sign_up(data.get("email"), data.get("password"), data.get("full_name"))
    if user.email_confirmed_at is None:
        send_confirmation_email(user)
        message = "Account created. Check your email to confirm your address."
    else:
        message = "Account created."
    return jsonify({"id": user.id, "email": user.email, "message": message}), 201


@bp.route("/auth/signin", methods=["POST"])
def signin():
    data = payload()
    user = auth.sign_in(data.get("email"), data.get("password"))
    return jsonify({"user": {"id": user.id, "email": user.email}, "profile": user.profile.to_dict()})


@bp.route("/auth/signout", methods=["POST"])
def signout():
    auth.sign_out()
    return jsonify({"message": "Signed out"})


@bp.route("/auth/resend", methods=["POST"])
def resend_confirmation():
    auth.resend_confirmation(payload().get("email"))
    return jsonify({"message": "Confirmation email sent"})


@bp.route("/auth/me")
def me():
    user = auth.current_user()
    if user is None:
        return jsonify({"user": None, "profile": None})
    profile = auth.current_profile()
    return jsonify({
        "user": {"id": user.id, "email": user.email},
        "profile": profile.to_dict() if profile else None,
    })


@bp.route("/email-confirmation")
def email_confirmation():
    token = request.args.get("token")
    if not token:
        raise ValidationError("Missing confirmation token.")
    user = auth.confirm_email(token)
    return jsonify({"message": "Email confirmed", "email": user.email})
