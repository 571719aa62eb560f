from datetime import date

from flask import Blueprint, current_app, jsonify

from .. import signals, workflow
from ..auth import current_profile, current_user, login_required, role_required
from ..database import db
from ..errors import NotFound
from ..models import Event, FacilitatorApplication, Profile
from ..submissions import FACILITATOR_APPLICATIONS
from ..validation import clean_facilitator_profile
from . import payload

bp = Blueprint("facilitators", __name__)

DIRECTORY_ROLES = ("facilitator", "admin")


def _directory_query():
    return Profile.query.filter(Profile.role.in_(DIRECTORY_ROLES), Profile.is_public_profile.is_(True))


@bp.route("/facilitators")
def list_facilitators():
    profiles = _directory_query().order_by(Profile.full_name.asc()).all()
    return jsonify([p.to_public_dict() for p in profiles])


@bp.route("/facilitators/<user_id>")
def facilitator_detail(user_id):
    profile = _directory_query().filter(Profile.user_id == user_id).first()
    if profile is None:
        raise NotFound("Facilitator not found.")
    events = (Event.query.filter(Event.facilitator_id == user_id, Event.date >= date.today())
              .order_by(Event.date.asc()).all())
    data = profile.to_public_dict()
    data["upcoming_events"] = [e.to_dict() for e in events]
    return jsonify(data)


@bp.route("/apply-facilitator", methods=["POST"])
@login_required
def apply():
    application = workflow.submit(FACILITATOR_APPLICATIONS, payload(), current_user().id)
    return jsonify(application.to_dict()), 201


@bp.route("/apply-facilitator")
@login_required
def my_application():
    application = (FacilitatorApplication.query.filter_by(user_id=current_user().id)
                   .order_by(FacilitatorApplication.submitted_at.desc()).first())
    return jsonify(application.to_dict() if application else None)


@bp.route("/edit-facilitator-profile")
@role_required("facilitator", "admin")
def facilitator_profile():
    return jsonify(current_profile().to_dict())


@bp.route("/edit-facilitator-profile", methods=["PATCH", "PUT", "POST"])
@role_required("facilitator", "admin")
def edit_facilitator_profile():
    profile = current_profile()
    changes = clean_facilitator_profile(payload())
    for key, value in changes.items():
        setattr(profile, key, value)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    signals.profile_updated.send(current_app._get_current_object(),
                                 profile=profile.to_dict(), changed=sorted(changes))
    return jsonify(profile.to_dict())
