"""
Cell-level writes: values, provenance history and formats.

Blueprint: cells_bp
Prefix: /api/v1

Every endpoint addresses a cell by (university_id, column_key, view_id).

Endpoints:
  Values:
    GET       /values?university_id&column_key&view_id   -- Read one cell
    POST/PUT  /values                                    -- Upsert {.., value}
    DELETE    /values?university_id&column_key&view_id   -- Remove one cell

  History:
    POST      /history                                   -- Append a provenance row

  Cell formats:
    GET       /cell-formats/<vid>                        -- {"<uid>_<key>": {attrs}}
    POST      /cell-formats                              -- Merge attrs into a cell's format
    DELETE    /cell-formats?university_id&column_key&view_id
"""

import logging

from flask import Blueprint, jsonify, request

from unidash.services import cell_format_service, history_service, value_service
from unidash.utils.errors import api_error, register_error_handlers
from unidash.utils.helpers import int_arg, int_field, json_body

logger = logging.getLogger(__name__)

cells_bp = Blueprint("cells", __name__, url_prefix="/api/v1")
register_error_handlers(cells_bp)

_COORDINATES = ("university_id", "column_key", "view_id")


def _coordinates_from_args():
    """Return ((uid, key, vid), None) from the query string or (None, error)."""
    uid, err = int_arg("university_id", required=True)
    if err:
        return None, err
    vid, err = int_arg("view_id", required=True)
    if err:
        return None, err
    key = request.args.get("column_key")
    if not key:
        return None, api_error("column_key is required", 400)
    return (uid, key, vid), None


def _coordinates_from_body(data):
    uid, err = int_field(data, "university_id")
    if err:
        return None, err
    vid, err = int_field(data, "view_id")
    if err:
        return None, err
    key = data["column_key"]
    if not isinstance(key, str) or not key:
        return None, api_error("column_key must be a non-empty string", 400)
    return (uid, key, vid), None


# ------------------------------------------------------------------
#  Values
# ------------------------------------------------------------------

@cells_bp.route("/values", methods=["GET"])
def get_value():
    coords, err = _coordinates_from_args()
    if err:
        return err
    cell = value_service.get_cell(*coords)
    if cell is None:
        uid, key, vid = coords
        cell = {"university_id": uid, "column_key": key, "view_id": vid, "value": None}
    return jsonify(cell), 200


@cells_bp.route("/values", methods=["POST", "PUT"])
def upsert_value():
    """Upsert one cell. Manual edits are not written to history."""
    data, err = json_body(*_COORDINATES)
    if err:
        return err
    coords, err = _coordinates_from_body(data)
    if err:
        return err
    return jsonify(value_service.upsert_cell(*coords, data.get("value"))), 200


@cells_bp.route("/values", methods=["DELETE"])
def delete_value():
    coords, err = _coordinates_from_args()
    if err:
        return err
    return jsonify({"deleted": value_service.delete_cell(*coords)}), 200


# ------------------------------------------------------------------
#  History
# ------------------------------------------------------------------

@cells_bp.route("/history", methods=["POST"])
def record_history():
    """Append a history row for a change that carries provenance."""
    data, err = json_body("university_id", "column_key")
    if err:
        return err
    uid, err = int_field(data, "university_id")
    if err:
        return err
    vid = None
    if data.get("view_id") is not None:
        vid, err = int_field(data, "view_id")
        if err:
            return err
    entry = history_service.record_change(
        uid,
        data["column_key"],
        vid,
        old_value=data.get("old_value"),
        new_value=data.get("new_value"),
        source=data.get("source"),
        confidence=data.get("confidence"),
        notes=data.get("notes"),
    )
    return jsonify(entry), 201


# ------------------------------------------------------------------
#  Cell formats
# ------------------------------------------------------------------

@cells_bp.route("/cell-formats/<int:vid>", methods=["GET"])
def list_formats(vid):
    return jsonify(cell_format_service.get_formats_for_view(vid)), 200


@cells_bp.route("/cell-formats", methods=["POST"])
def set_format():
    """Merge format attributes. Omitted keys are kept, null keys are cleared."""
    data, err = json_body(*_COORDINATES)
    if err:
        return err
    coords, err = _coordinates_from_body(data)
    if err:
        return err
    attrs = {k: v for k, v in data.items() if k not in _COORDINATES}
    result = cell_format_service.set_format(*coords, attrs)
    return jsonify({"format": result}), 200


@cells_bp.route("/cell-formats", methods=["DELETE"])
def clear_format():
    coords, err = _coordinates_from_args()
    if err:
        return err
    return jsonify({"deleted": cell_format_service.clear_format(*coords)}), 200
