# database.py
from flask_sqlalchemy import SQLAlchemy

# Shared across the app, initialised in create_app()
db = SQLAlchemy()
