import os


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) in [True, "True", "true", "1"]


def apply_defaults(app):
    """Fill in any config key not already set from the environment."""
    # It is highly recommended to use a strong, long, random key here, not a simple string
    app.config.setdefault("SECRET_KEY", os.environ.get("FLASK_SECRET_KEY", "dev-secret-key-CHANGE-ME-IN-PROD"))

    # DB config
    default_db = f"sqlite:///{os.path.join(app.instance_path, 'circlehub.db')}"
    app.config.setdefault("SQLALCHEMY_DATABASE_URI", os.environ.get("DATABASE_URL", default_db))
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)

    # SMTP / Email settings (leave MAIL_SERVER empty to log emails instead of sending them)
    app.config.setdefault("MAIL_SERVER", os.environ.get("MAIL_SERVER", ""))
    app.config.setdefault("MAIL_PORT", int(os.environ.get("MAIL_PORT", 587)))
    app.config.setdefault("MAIL_USERNAME", os.environ.get("MAIL_USERNAME", ""))
    app.config.setdefault("MAIL_PASSWORD", os.environ.get("MAIL_PASSWORD", ""))
    app.config.setdefault("MAIL_USE_TLS", _flag("MAIL_USE_TLS", "True"))
    app.config.setdefault("ADMIN_EMAIL", os.environ.get("ADMIN_EMAIL", ""))
    app.config.setdefault("BASE_URL", os.environ.get("BASE_URL", "http://127.0.0.1:5000"))

    # Uploads
    app.config.setdefault("UPLOAD_FOLDER", os.environ.get("UPLOAD_FOLDER", os.path.join(app.instance_path, "uploads")))
    app.config.setdefault("MAX_IMAGE_BYTES", int(os.environ.get("MAX_IMAGE_BYTES", 5 * 1024 * 1024)))
    # Request bodies above this are refused outright by werkzeug
    app.config.setdefault("MAX_CONTENT_LENGTH", 8 * 1024 * 1024)

    # Behaviour switches
    app.config.setdefault("REQUIRE_EMAIL_CONFIRMATION", _flag("REQUIRE_EMAIL_CONFIRMATION", "True"))
    app.config.setdefault("ENFORCE_EVENT_CAPACITY", _flag("ENFORCE_EVENT_CAPACITY", "True"))

    # Token lifetimes, in seconds
    app.config.setdefault("REVIEW_LINK_TTL", int(os.environ.get("REVIEW_LINK_TTL", 3600)))
    app.config.setdefault("CONFIRMATION_TOKEN_TTL", int(os.environ.get("CONFIRMATION_TOKEN_TTL", 24 * 3600)))
