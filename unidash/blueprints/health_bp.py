"""
Health check and seeding.

Blueprint: health_bp
Prefix: /api/v1

Endpoints:
    GET  /health       -- simple 200 if the app is running
    GET  /health/live  -- database round-trip plus AI mode
    POST /seed         -- idempotently load the General view and starter data
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from unidash.models import db
from unidash.services import seed_service
from unidash.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1")
register_error_handlers(health_bp)


@health_bp.route("/health", methods=["GET"])
def ready():
    """Readiness probe; always 200 if the app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/health/live", methods=["GET"])
def live():
    """Liveness check with dependency status."""
    checks = {}
    overall = True

    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {
            "status": "ok",
            "dialect": db.engine.dialect.name,
            "latency_ms": round(db_ms, 1),
        }
    except SQLAlchemyError as exc:
        db.session.rollback()
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check: database failed: %s", exc)

    checks["ai"] = {"mode": current_app.config.get("AI_MODE", "stub")}
    checks["app"] = {
        "name": "University Dashboard",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({"status": "ok" if overall else "degraded", "checks": checks}), status_code


@health_bp.route("/seed", methods=["POST"])
def seed():
    return jsonify(seed_service.seed_database()), 200
