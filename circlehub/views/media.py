from flask import Blueprint, jsonify, request, send_from_directory

from .. import storage
from ..auth import login_required
from . import payload

bp = Blueprint("media", __name__)


@bp.route("/uploads", methods=["POST"])
@login_required
def upload():
    data = payload()
    bucket = data.get("bucket") or ""
    path = storage.upload(bucket, request.files.get("file"), folder=data.get("folder") or "")
    return jsonify({"bucket": bucket, "path": path, "url": storage.public_url(bucket, path)}), 201


@bp.route("/media/<bucket>/<path:path>")
def serve(bucket, path):
    return send_from_directory(storage.bucket_path(bucket), path)
