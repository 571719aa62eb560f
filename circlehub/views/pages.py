from datetime import date

from flask import Blueprint, jsonify

from ..models import Event, Profile, Resource
from ..registrations import participant_counts

bp = Blueprint("pages", __name__)

ABOUT = {
    "name": "Authentic Relating Community",
    "summary": (
        "A local community for authentic relating, circling and related practices. "
        "We host regular practice evenings, workshops and retreats, keep a directory "
        "of facilitators and venues, and share articles and links about the practice."
    ),
    "practices": ["Authentic Relating", "Circling", "T-Group", "Nonviolent Communication",
                  "Somatic Practices", "Mindfulness"],
}


@bp.route("/")
def home():
    upcoming = (Event.query.filter(Event.date >= date.today())
                .order_by(Event.date.asc()).limit(3).all())
    counts = participant_counts(e.id for e in upcoming)
    latest = Resource.query.order_by(Resource.publish_date.desc()).limit(3).all()
    return jsonify({
        "upcoming_events": [e.to_dict(current_participants=counts[e.id]) for e in upcoming],
        "latest_resources": [r.to_dict() for r in latest],
        "facilitator_count": Profile.query.filter_by(role="facilitator", is_public_profile=True).count(),
    })


@bp.route("/about")
def about():
    return jsonify(ABOUT)
