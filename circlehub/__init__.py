import os

from flask import Flask

from .database import db


def create_app(config=None):
    """Build the app; ``config`` overrides are applied before the env defaults."""
    app = Flask(__name__, instance_relative_config=True)
    if config:
        app.config.update(config)

    from .config import apply_defaults
    apply_defaults(app)

    # Ensure instance folder exists
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize db with the app
    db.init_app(app)

    from . import auth, cli, mailer
    from .errors import register_error_handlers
    from .views import register_blueprints

    register_error_handlers(app)
    app.before_request(auth.load_current_user)
    register_blueprints(app)
    mailer.connect_signals(app)
    auth.connect_signals(app)
    cli.register(app)

    with app.app_context():
        db.create_all()

    return app
