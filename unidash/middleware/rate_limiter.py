"""
Rate limiting for the AI blueprint.

Every AI refresh fans out into one model call per university, so the AI
routes get a strict per-IP limit (AI_REFRESH_RATE_LIMIT, default
10/minute). Everything else is unlimited; this is a single-user app.

Usage:
    from unidash.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)


def init_rate_limits(app, limiter):
    """Apply the AI limit and exempt the health probes.

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        logger.debug("Rate limiter disabled (TESTING=True)")
        return

    ai_limit = app.config.get("AI_REFRESH_RATE_LIMIT", "10/minute")
    bp = app.blueprints.get("ai")
    if bp:
        limiter.limit(ai_limit)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: AI=%s", ai_limit)
