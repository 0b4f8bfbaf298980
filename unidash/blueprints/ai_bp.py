"""
AI refresh endpoints.

Blueprint: ai_bp
Prefix: /api/v1/ai

Endpoints:
    POST /generate  -- {university, columns} → normalised results (proxy target)
    POST /refresh   -- {view_id, column_keys, university_ids?} → apply results to a view

Both routes are rate limited (AI_REFRESH_RATE_LIMIT).
"""

import logging

from flask import Blueprint, jsonify

from unidash.ai import refresh
from unidash.utils.errors import api_error, register_error_handlers
from unidash.utils.helpers import int_field, json_body

logger = logging.getLogger(__name__)

ai_bp = Blueprint("ai", __name__, url_prefix="/api/v1/ai")
register_error_handlers(ai_bp)


@ai_bp.route("/generate", methods=["POST"])
def generate():
    """Answer one university's request with the configured transport."""
    data, err = json_body("university", "columns")
    if err:
        return err
    university, columns = data["university"], data["columns"]
    if not isinstance(university, dict) or not university.get("name"):
        return api_error("university.name is required", 400)
    if not isinstance(columns, list) or not all(
        isinstance(c, dict) and c.get("key") for c in columns
    ):
        return api_error("columns must be a list of objects with a key", 400)
    columns = [
        {
            "key": c["key"],
            "label": c.get("label") or c["key"],
            "type": c.get("type") or "text",
            "section": c.get("section") or "Basics",
            "aiInstructions": c.get("aiInstructions"),
        }
        for c in columns
    ]
    results = refresh.get_gateway().generate_values(university, columns)
    return jsonify([r.to_dict() for r in results]), 200


@ai_bp.route("/refresh", methods=["POST"])
def refresh_view():
    """Refresh cells of a view; partial success is reported, not rolled back."""
    data, err = json_body("view_id", "column_keys")
    if err:
        return err
    vid, err = int_field(data, "view_id")
    if err:
        return err
    column_keys = data["column_keys"]
    if not isinstance(column_keys, list) or not all(isinstance(k, str) for k in column_keys):
        return api_error("column_keys must be a list of strings", 400)
    university_ids = data.get("university_ids")
    if university_ids is not None and (
        not isinstance(university_ids, list)
        or not all(isinstance(u, int) for u in university_ids)
    ):
        return api_error("university_ids must be a list of integers", 400)

    report = refresh.refresh_view(vid, column_keys, university_ids=university_ids)
    return jsonify(report), 200
