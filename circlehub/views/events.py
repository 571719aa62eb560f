from datetime import date

from flask import Blueprint, current_app, jsonify, request

from .. import registrations
from ..auth import current_role, current_user, login_required, role_required
from ..database import db
from ..errors import EventHasRegistrations, PermissionDenied, ValidationError
from ..models import Event
from ..permissions import can_edit
from ..validation import clean_event
from . import flag, payload

bp = Blueprint("events", __name__)


def _editable_event(event_id: str) -> Event:
    event = registrations.get_event(event_id)
    if not can_edit(current_role(), event.facilitator_id, current_user().id):
        raise PermissionDenied("You can only change your own events.")
    return event


@bp.route("/events")
def list_events():
    query = Event.query
    if not flag(request.args.get("include_past")):
        query = query.filter(Event.date >= date.today())
    if request.args.get("type"):
        query = query.filter_by(type=request.args["type"])
    events = query.order_by(Event.date.asc(), Event.time.asc()).all()
    counts = registrations.participant_counts(e.id for e in events)
    return jsonify([e.to_dict(current_participants=counts[e.id]) for e in events])


@bp.route("/events", methods=["POST"])
@role_required("facilitator", "admin")
def create_event():
    event = Event(facilitator_id=current_user().id, **clean_event(payload()))
    db.session.add(event)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("[EVENTS] %s created event %s", current_user().id, event.id)
    return jsonify(event.to_dict(current_participants=0)), 201


@bp.route("/events/<event_id>")
def get_event(event_id):
    event = registrations.get_event(event_id)
    data = event.to_dict(current_participants=registrations.current_participants(event_id))
    user = current_user()
    data["is_registered"] = bool(user and registrations.active_registration(event_id, user.id))
    return jsonify(data)


@bp.route("/events/<event_id>", methods=["PATCH", "PUT"])
@login_required
def update_event(event_id):
    event = _editable_event(event_id)
    changes = clean_event(payload(), partial=True)
    if "max_participants" in changes:
        taken = registrations.current_participants(event_id)
        if changes["max_participants"] < taken:
            raise ValidationError(f"{taken} people are already registered; "
                                  f"max_participants cannot be lower than that.")
    for key, value in changes.items():
        setattr(event, key, value)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return jsonify(event.to_dict(current_participants=registrations.current_participants(event_id)))


@bp.route("/events/<event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id):
    event = _editable_event(event_id)
    if registrations.current_participants(event_id) > 0:
        raise EventHasRegistrations("Events with registered participants cannot be deleted.")
    try:
        db.session.delete(event)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("[EVENTS] event %s deleted", event_id)
    return jsonify({"status": "deleted"})


@bp.route("/events/<event_id>/register", methods=["POST"])
@login_required
def register(event_id):
    registration = registrations.register(event_id, current_user().id)
    return jsonify(registration.to_dict()), 201


@bp.route("/events/<event_id>/participants")
@login_required
def participants(event_id):
    _editable_event(event_id)
    return jsonify(registrations.list_participants(event_id))


@bp.route("/my-events")
@login_required
def my_events():
    return jsonify(registrations.list_for_user(current_user().id))


@bp.route("/my-events/<registration_id>/cancel", methods=["POST"])
@login_required
def cancel_registration(registration_id):
    registration = registrations.cancel(registration_id, current_user().id)
    return jsonify(registration.to_dict())


@bp.route("/manage-events")
@role_required("facilitator", "admin")
def manage_events():
    events = (Event.query.filter_by(facilitator_id=current_user().id)
              .order_by(Event.date.asc()).all())
    counts = registrations.participant_counts(e.id for e in events)
    items = []
    for event in events:
        data = event.to_dict()
        data["registration_count"] = counts[event.id]
        items.append(data)
    return jsonify(items)
