from flask import Blueprint, jsonify, request
from sqlalchemy import or_

from .. import workflow
from ..auth import current_role, current_user, login_required
from ..database import db
from ..errors import NotFound, PermissionDenied
from ..models import RESOURCE_CATEGORIES, Resource
from ..permissions import capabilities
from ..submissions import RESOURCES
from ..validation import clean_resource
from . import flag, payload

bp = Blueprint("resources", __name__)


def _get_resource(resource_id: str) -> Resource:
    resource = db.session.get(Resource, resource_id)
    if resource is None:
        raise NotFound("Resource not found.")
    return resource


def _editable_resource(resource_id: str) -> Resource:
    resource = _get_resource(resource_id)
    if not capabilities(current_role(), resource.author_id, current_user().id).can_edit:
        raise PermissionDenied("You can only change your own resources.")
    return resource


@bp.route("/resources")
def list_resources():
    query = Resource.query
    if request.args.get("category"):
        query = query.filter_by(category=request.args["category"])
    if request.args.get("type"):
        query = query.filter_by(type=request.args["type"])
    search = (request.args.get("q") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Resource.title.ilike(pattern),
                                 Resource.description.ilike(pattern),
                                 Resource.author_name.ilike(pattern)))
    items = [r.to_dict() for r in query.order_by(Resource.publish_date.desc()).all()]

    # Tags are a JSON list, filtered here to stay portable across backends
    tag = (request.args.get("tag") or "").strip()
    if tag:
        items = [r for r in items if tag in r["tags"]]
    return jsonify(items)


@bp.route("/resources/categories")
def categories():
    return jsonify(list(RESOURCE_CATEGORIES))


@bp.route("/resources", methods=["POST"])
@login_required
def submit_resource():
    data = payload()
    if flag(data.get("publish_directly")):
        resource = workflow.publish_directly(RESOURCES, data, current_user().id)
        return jsonify({"published": True, "resource": resource.to_dict()}), 201
    submission = workflow.submit(RESOURCES, data, current_user().id)
    return jsonify({"published": False, "submission": submission.to_dict()}), 201


@bp.route("/resources/<resource_id>")
def get_resource(resource_id):
    resource = _get_resource(resource_id)
    data = resource.to_dict()
    user = current_user()
    data["can_edit"] = bool(user) and capabilities(current_role(), resource.author_id, user.id).can_edit
    return jsonify(data)


@bp.route("/resources/<resource_id>", methods=["PATCH", "PUT"])
@login_required
def update_resource(resource_id):
    resource = _editable_resource(resource_id)
    merged = resource.to_dict()
    merged.update(payload())
    for key, value in clean_resource(merged).items():
        setattr(resource, key, value)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return jsonify(resource.to_dict())


@bp.route("/resources/<resource_id>", methods=["DELETE"])
@login_required
def delete_resource(resource_id):
    resource = _editable_resource(resource_id)
    try:
        db.session.delete(resource)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return jsonify({"status": "deleted"})
