from flask import Blueprint, jsonify, request

from .. import workflow
from ..auth import current_role, current_user, login_required
from ..database import db
from ..errors import NotFound, PermissionDenied
from ..models import Venue
from ..permissions import can_edit, can_publish_directly
from ..submissions import VENUES
from ..validation import clean_venue
from . import flag, payload

bp = Blueprint("venues", __name__)


def _get_venue(venue_id: str) -> Venue:
    venue = db.session.get(Venue, venue_id)
    if venue is None:
        raise NotFound("Venue not found.")
    return venue


def _editable_venue(venue_id: str) -> Venue:
    venue = _get_venue(venue_id)
    if not can_edit(current_role(), venue.author_id, current_user().id):
        raise PermissionDenied("You can only change your own venues.")
    return venue


@bp.route("/venues")
def list_venues():
    query = Venue.query
    if request.args.get("cost_level"):
        query = query.filter_by(cost_level=request.args["cost_level"])
    if request.args.get("min_capacity", "").isdigit():
        query = query.filter(Venue.hosting_capacity >= int(request.args["min_capacity"]))
    venues = query.order_by(Venue.created_at.desc()).all()
    return jsonify([v.to_dict() for v in venues])


@bp.route("/venues", methods=["POST"])
@login_required
def submit_venue():
    data = payload()
    # Facilitators and admins register venues straight away unless they ask for review
    if can_publish_directly(current_role()) and flag(data.get("publish_directly", True)):
        venue = workflow.publish_directly(VENUES, data, current_user().id)
        return jsonify({"published": True, "venue": venue.to_dict()}), 201
    submission = workflow.submit(VENUES, data, current_user().id)
    return jsonify({"published": False, "submission": submission.to_dict()}), 201


@bp.route("/venues/<venue_id>")
def get_venue(venue_id):
    return jsonify(_get_venue(venue_id).to_dict())


@bp.route("/venues/<venue_id>", methods=["PATCH", "PUT"])
@login_required
def update_venue(venue_id):
    venue = _editable_venue(venue_id)
    merged = venue.to_dict()
    merged.update(payload())
    for key, value in clean_venue(merged).items():
        setattr(venue, key, value)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return jsonify(venue.to_dict())


@bp.route("/venues/<venue_id>", methods=["DELETE"])
@login_required
def delete_venue(venue_id):
    venue = _editable_venue(venue_id)
    try:
        db.session.delete(venue)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return jsonify({"status": "deleted"})
