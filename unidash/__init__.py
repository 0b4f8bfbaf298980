"""
University Dashboard
Flask Application Factory.

Usage:
    from unidash import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from unidash.config import config
from unidash.middleware.logging_config import configure_logging
from unidash.middleware.rate_limiter import init_rate_limits
from unidash.middleware.timing import init_request_timing
from unidash.models import db

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; the AI blueprint gets its own
    storage_uri="memory://",
)


def _ensure_sqlite_dir(uri):
    prefix = "sqlite:///"
    if uri and uri.startswith(prefix) and ":memory:" not in uri:
        os.makedirs(os.path.dirname(uri[len(prefix):]) or ".", exist_ok=True)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    cfg = config[config_name]
    app.config.from_object(cfg() if config_name == "production" else cfg)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    _ensure_sqlite_dir(app.config.get("SQLALCHEMY_DATABASE_URI"))
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    app.config.setdefault("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)  # documents carry base64 blobs

    # ── Import all models so create_all and Alembic see them ─────────────
    from unidash.models import sheet as _sheet_models      # noqa: F401
    from unidash.models import tracker as _tracker_models  # noqa: F401

    # ── Schema: create missing tables, add missing columns ───────────────
    from unidash.services.schema_service import ensure_schema

    with app.app_context():
        report = ensure_schema()
        app.logger.info(
            "Schema ready: %d tables created, %d columns added",
            len(report["created_tables"]), len(report["added_columns"]),
        )
        if app.config.get("AUTO_SEED"):
            from unidash.services.seed_service import seed_database
            seed_database()

    # ── Blueprints ───────────────────────────────────────────────────────
    from unidash.blueprints.ai_bp import ai_bp
    from unidash.blueprints.cells_bp import cells_bp
    from unidash.blueprints.health_bp import health_bp
    from unidash.blueprints.tracker_bp import tracker_bp
    from unidash.blueprints.universities_bp import universities_bp
    from unidash.blueprints.views_bp import views_bp

    app.register_blueprint(views_bp)
    app.register_blueprint(universities_bp)
    app.register_blueprint(cells_bp)
    app.register_blueprint(ai_bp)
    app.register_blueprint(tracker_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed")
    def seed_cmd():
        """Load the General view, starter universities and columns."""
        from unidash.services.seed_service import seed_database
        summary = seed_database()
        logger.info("Seeded: %s", summary)

    @app.cli.command("ensure-schema")
    def ensure_schema_cmd():
        """Create missing tables and add missing columns."""
        summary = ensure_schema()
        logger.info("Schema: %s", summary)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
