from flask import Blueprint, current_app, jsonify, request

from .. import signals, workflow
from ..auth import current_user, role_required
from ..database import db
from ..errors import NotFound, PermissionDenied, ValidationError
from ..models import USER_ROLES, Profile
from ..submissions import DOMAINS, get_domain
from ..tokens import verify_review_token
from ..validation import as_text
from . import payload

bp = Blueprint("admin", __name__)

STATUS_FILTERS = ("pending", "approved", "rejected", "all")


@bp.route("/admin")
@role_required("admin")
def overview():
    model_counts = {}
    for name, domain in DOMAINS.items():
        model_counts[name] = domain.submission_model.query.filter_by(status=workflow.PENDING).count()
    return jsonify({"pending": model_counts, "users": Profile.query.count()})


@bp.route("/admin/users")
@role_required("admin")
def list_users():
    profiles = Profile.query.order_by(Profile.created_at.desc()).all()
    return jsonify([p.to_dict() for p in profiles])


@bp.route("/admin/users/<user_id>/role", methods=["PATCH", "PUT", "POST"])
@role_required("admin")
def change_role(user_id):
    new_role = as_text(payload().get("role"))
    if new_role not in USER_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(USER_ROLES)}")
    profile = Profile.query.filter_by(user_id=user_id).first()
    if profile is None:
        raise NotFound("User not found.")
    if user_id == current_user().id and new_role != "admin":
        raise ValidationError("You cannot remove your own admin role.")
    profile.role = new_role
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("[ADMIN] %s set role of %s to %s", current_user().id, user_id, new_role)
    signals.profile_updated.send(current_app._get_current_object(),
                                 profile=profile.to_dict(), changed=["role"])
    return jsonify(profile.to_dict())


@bp.route("/admin/<domain_name>")
@role_required("admin")
def list_submissions(domain_name):
    domain = get_domain(domain_name)
    status = request.args.get("status", "pending")
    if status not in STATUS_FILTERS:
        raise ValidationError(f"Status must be one of: {', '.join(STATUS_FILTERS)}")
    return jsonify(workflow.list_submissions(domain, None if status == "all" else status))


@bp.route("/admin/<domain_name>/<submission_id>/<action>", methods=["POST"])
@role_required("admin")
def review_submission(domain_name, submission_id, action):
    domain = get_domain(domain_name)
    if action not in workflow.REVIEW_ACTIONS:
        raise NotFound("Unknown review action.")
    notes = as_text(payload().get("admin_notes"))
    if action == "approve":
        submission, published = workflow.approve(domain, submission_id, current_user().id, notes)
        return jsonify({
            "submission": submission.to_dict(),
            "published": published.to_dict() if published is not None else None,
        })
    submission = workflow.reject(domain, submission_id, current_user().id, notes)
    return jsonify({"submission": submission.to_dict(), "published": None})


# --------------------------------------------------------------------------------------
# One-click decision links from the admin notification email
# --------------------------------------------------------------------------------------
@bp.route("/email/review/<token>")
def email_review_decision(token):
    # Accessible without login; the signed token names the reviewing admin
    data = verify_review_token(token)
    if not data:
        raise ValidationError("Action link is invalid or has expired.")

    reviewer = Profile.query.filter_by(user_id=data.get("reviewer_id")).first()
    if reviewer is None or reviewer.role != "admin":
        raise PermissionDenied("This link's reviewer is no longer an admin.")

    domain = get_domain(data.get("domain"))
    submission = workflow.review(domain, data.get("submission_id"), data.get("action"), reviewer.user_id)
    return jsonify({
        "message": f"Submission has been {submission.status}.",
        "submission": submission.to_dict(),
    })
