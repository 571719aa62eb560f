from flask import Blueprint, current_app, jsonify

from .. import signals, workflow
from ..auth import current_profile, current_user, login_required
from ..database import db
from ..permissions import capabilities
from ..submissions import DOMAINS
from ..validation import clean_profile
from . import payload

bp = Blueprint("profile", __name__)


@bp.route("/profile")
@login_required
def get_profile():
    profile = current_profile()
    data = profile.to_dict()
    data["capabilities"] = capabilities(profile.role)._asdict()
    return jsonify(data)


@bp.route("/profile", methods=["PATCH", "PUT", "POST"])
@login_required
def update_profile():
    profile = current_profile()
    changes = clean_profile(payload())
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


@bp.route("/profile/submissions")
@login_required
def my_submissions():
    return jsonify(workflow.list_for_user(DOMAINS.values(), current_user().id))
