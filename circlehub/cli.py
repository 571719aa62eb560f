import click
from werkzeug.security import generate_password_hash

from .database import db
from .models import Profile, User, utcnow


def register(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("password")
    @click.argument("name")
    def create_admin(email, password, name):
        """Create a confirmed admin account, or promote an existing one."""
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email, password_hash=generate_password_hash(password),
                        email_confirmed_at=utcnow())
            db.session.add(user)
            db.session.flush()
            db.session.add(Profile(user_id=user.id, full_name=name, email=email, role="admin"))
            message = f"Admin {email} created."
        else:
            user.profile.role = "admin"
            if user.email_confirmed_at is None:
                user.email_confirmed_at = utcnow()
            message = f"{email} promoted to admin."
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        click.echo(message)
