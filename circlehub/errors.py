"""Error types surfaced to API clients as ``{"error": message}`` JSON."""
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .database import db


class CircleHubError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CircleHubError):
    status_code = 400


class AuthenticationError(CircleHubError):
    status_code = 401


class PermissionDenied(CircleHubError):
    status_code = 403


class NotFound(CircleHubError):
    status_code = 404


class Conflict(CircleHubError):
    status_code = 409


class AlreadyReviewed(Conflict):
    pass


class AlreadyRegistered(Conflict):
    pass


class EventFull(Conflict):
    pass


class EventHasRegistrations(Conflict):
    pass


def register_error_handlers(app):
    @app.errorhandler(CircleHubError)
    def handle_app_error(err):
        return jsonify({"error": err.message}), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err):
        # Any write still in flight is discarded so the caller can simply retry
        db.session.rollback()
        app.logger.error("Database error: %s", err)
        return jsonify({"error": str(err.__cause__ or err)}), 500
