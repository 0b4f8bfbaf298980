"""
Spreadsheet views and their columns.

Blueprint: views_bp
Prefix: /api/v1

Endpoints:
  Views:
    GET/POST        /views                         -- List / create (optionally copying a view)
    GET/PUT/DELETE  /views/<vid>                   -- Single view CRUD
    GET             /views/<vid>/data?mode=        -- Composed grid (raw | typed | display)

  Columns:
    GET/POST        /views/<vid>/columns           -- List (?visible_only=true) / create
    POST            /views/<vid>/columns/reorder   -- Persist drag order {column_ids: [...]}
    GET/PUT/DELETE  /columns/<cid>                 -- Single column CRUD
"""

import logging

from flask import Blueprint, jsonify, request

from unidash.services import column_service, view_composer, view_service
from unidash.utils.errors import api_error, register_error_handlers
from unidash.utils.helpers import json_body

logger = logging.getLogger(__name__)

views_bp = Blueprint("views", __name__, url_prefix="/api/v1")
register_error_handlers(views_bp)


# ------------------------------------------------------------------
#  Views
# ------------------------------------------------------------------

@views_bp.route("/views", methods=["GET"])
def list_views():
    return jsonify(view_service.list_views()), 200


@views_bp.route("/views", methods=["POST"])
def create_view():
    """Create a view. Without copy_from_view_id it gets the starter columns."""
    data, err = json_body("name")
    if err:
        return err
    copy_from = data.get("copy_from_view_id")
    if copy_from is not None and not isinstance(copy_from, int):
        return api_error("copy_from_view_id must be an integer", 400)
    view = view_service.create_view(data["name"], copy_from_view_id=copy_from)
    return jsonify(view), 201


@views_bp.route("/views/<int:vid>", methods=["GET"])
def get_view(vid):
    return jsonify(view_service.get_view(vid)), 200


@views_bp.route("/views/<int:vid>", methods=["PUT"])
def rename_view(vid):
    data, err = json_body("name")
    if err:
        return err
    return jsonify(view_service.rename_view(vid, data["name"])), 200


@views_bp.route("/views/<int:vid>", methods=["DELETE"])
def delete_view(vid):
    return jsonify({"deleted": view_service.delete_view(vid)}), 200


@views_bp.route("/views/<int:vid>/data", methods=["GET"])
def view_data(vid):
    """Dense grid: one row per university, every visible column key present."""
    mode = request.args.get("mode", "raw")
    return jsonify(view_composer.compose_view(vid, mode=mode)), 200


# ------------------------------------------------------------------
#  Columns
# ------------------------------------------------------------------

@views_bp.route("/views/<int:vid>/columns", methods=["GET"])
def list_columns(vid):
    visible_only = request.args.get("visible_only", "false").lower() in ("1", "true", "yes")
    return jsonify(column_service.list_columns(vid, visible_only=visible_only)), 200


@views_bp.route("/views/<int:vid>/columns", methods=["POST"])
def create_column(vid):
    data, err = json_body()
    if err:
        return err
    return jsonify(column_service.create_column(vid, data)), 201


@views_bp.route("/views/<int:vid>/columns/reorder", methods=["POST"])
def reorder_columns(vid):
    data, err = json_body("column_ids")
    if err:
        return err
    if not isinstance(data["column_ids"], list):
        return api_error("column_ids must be a list", 400)
    return jsonify(column_service.reorder_columns(vid, data["column_ids"])), 200


@views_bp.route("/columns/<int:cid>", methods=["GET"])
def get_column(cid):
    return jsonify(column_service.get_column(cid)), 200


@views_bp.route("/columns/<int:cid>", methods=["PUT"])
def update_column(cid):
    data, err = json_body()
    if err:
        return err
    return jsonify(column_service.update_column(cid, data)), 200


@views_bp.route("/columns/<int:cid>", methods=["DELETE"])
def delete_column(cid):
    """Delete a column along with its values and formats."""
    return jsonify({"deleted": column_service.delete_column(cid)}), 200
