"""
University Dashboard
Model package.

Holds the shared Flask-SQLAlchemy ``db`` handle so models and services can
import it without touching the application factory:

    from unidash.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
