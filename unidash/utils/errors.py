"""Standardised API error responses.

Usage
-----
    from unidash.utils.errors import api_error, register_error_handlers

    register_error_handlers(views_bp)            # once per blueprint
    return api_error("name is required", 400)    # pre-checks in a route

Service exceptions map to status codes in one place:

    ValidationError              → 422  {"error", "details"}
    NotFoundError                → 404
    StoreUnavailableError        → 503
    sqlalchemy OperationalError  → 503
    AIConfigError                → 503
    AIProviderError / Response   → 502
    anything else                → 500 (logged with traceback)
"""

import logging

from flask import jsonify, request
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from unidash.core.exceptions import (
    AIConfigError,
    AIProviderError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from unidash.models import db

logger = logging.getLogger(__name__)


def api_error(message: str, status: int, *, details: dict | None = None):
    """Return a (response, status) tuple with the standard error body."""
    body = {"error": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def register_error_handlers(bp):
    """Attach the shared exception → HTTP mapping to a blueprint."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(str(error), 404)

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return jsonify({"error": str(error), "details": error.details}), 422

    @bp.errorhandler(StoreUnavailableError)
    @bp.errorhandler(OperationalError)
    def _handle_store_down(error: Exception):
        db.session.rollback()
        logger.error("Store unavailable in %s: %s", request.endpoint, error)
        return api_error("Database unavailable", 503)

    @bp.errorhandler(AIConfigError)
    def _handle_ai_config(error: AIConfigError):
        logger.error("AI misconfigured: %s", error)
        return api_error(str(error), 503)

    @bp.errorhandler(AIProviderError)
    def _handle_ai_provider(error: AIProviderError):
        logger.warning("AI provider failed in %s: %s", request.endpoint, error)
        return api_error(str(error), 502)

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        db.session.rollback()
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error("Internal server error", 500)

    return bp
