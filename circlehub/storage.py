"""Image storage on the local filesystem, one directory per bucket."""
import os
import secrets
import time

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from .errors import NotFound, ValidationError

BUCKETS = ("event-images", "resource-images", "venue-images", "profile-images")


def bucket_path(bucket: str) -> str:
    if bucket not in BUCKETS:
        raise NotFound(f"Unknown storage bucket: {bucket}")
    return os.path.join(current_app.config["UPLOAD_FOLDER"], bucket)


def _file_size(file) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def validate_image(file):
    if file is None or not file.filename:
        raise ValidationError("Please select an image file")
    if not (file.mimetype or "").startswith("image/"):
        raise ValidationError("Please select an image file")
    limit = current_app.config["MAX_IMAGE_BYTES"]
    if _file_size(file) > limit:
        raise ValidationError(f"Image size must be less than {limit // (1024 * 1024)}MB")


def _unique_name(filename: str) -> str:
    ext = os.path.splitext(secure_filename(filename))[1].lower()
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"


def upload(bucket: str, file, folder: str = "") -> str:
    """Store ``file`` and return its path inside the bucket."""
    validate_image(file)
    root = bucket_path(bucket)
    folder = secure_filename(folder) if folder else ""
    path = f"{folder}/{_unique_name(file.filename)}" if folder else _unique_name(file.filename)

    target = os.path.join(root, path)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    # Never overwrite an existing object
    if os.path.exists(target):
        raise ValidationError("An image with this name already exists, please retry.")
    file.save(target)
    current_app.logger.info("Stored image %s/%s", bucket, path)
    return path


def public_url(bucket: str, path: str) -> str:
    bucket_path(bucket)
    return url_for("media.serve", bucket=bucket, path=path, _external=True)
