"""Shared request-parsing helpers for blueprints.

Pre-checks follow the tuple-return pattern (never abort):

    data, err = json_body("name")
    if err:
        return err
"""

import logging

from flask import request

from unidash.utils.errors import api_error

logger = logging.getLogger(__name__)


def json_body(*required):
    """Return (payload, None) or (None, 400 error tuple).

    A field counts as missing when absent or None.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, api_error("Request body must be a JSON object", 400)
    missing = [f for f in required if data.get(f) is None]
    if missing:
        return None, api_error(
            f"Missing required field(s): {', '.join(missing)}", 400,
            details={f: "required" for f in missing},
        )
    return data, None


def int_arg(name: str, *, required: bool = False):
    """Parse an integer query argument. Returns (value, error tuple or None)."""
    raw = request.args.get(name)
    if raw in (None, ""):
        if required:
            return None, api_error(f"{name} is required", 400)
        return None, None
    try:
        return int(raw), None
    except ValueError:
        return None, api_error(f"{name} must be an integer", 400)


def int_field(data: dict, name: str):
    """Coerce a JSON body field to int. Returns (value, error tuple or None)."""
    try:
        return int(data[name]), None
    except (TypeError, ValueError):
        return None, api_error(f"{name} must be an integer", 400)
