"""
Universities (row subjects) and their change history.

Blueprint: universities_bp
Prefix: /api/v1

Endpoints:
    GET/POST        /universities                 -- List / create
    GET/PUT/DELETE  /universities/<uid>           -- Single university CRUD
    GET             /universities/<uid>/history   -- Value history (?view_id, ?column_key)
"""

import logging

from flask import Blueprint, jsonify, request

from unidash.services import history_service, university_service
from unidash.utils.errors import register_error_handlers
from unidash.utils.helpers import int_arg, json_body

logger = logging.getLogger(__name__)

universities_bp = Blueprint("universities", __name__, url_prefix="/api/v1")
register_error_handlers(universities_bp)


@universities_bp.route("/universities", methods=["GET"])
def list_universities():
    return jsonify(university_service.list_universities()), 200


@universities_bp.route("/universities", methods=["POST"])
def create_university():
    data, err = json_body("name")
    if err:
        return err
    return jsonify(university_service.create_university(data)), 201


@universities_bp.route("/universities/<int:uid>", methods=["GET"])
def get_university(uid):
    return jsonify(university_service.get_university(uid)), 200


@universities_bp.route("/universities/<int:uid>", methods=["PUT"])
def update_university(uid):
    data, err = json_body()
    if err:
        return err
    return jsonify(university_service.update_university(uid, data)), 200


@universities_bp.route("/universities/<int:uid>", methods=["DELETE"])
def delete_university(uid):
    """Delete a university and its cells in every view."""
    return jsonify({"deleted": university_service.delete_university(uid)}), 200


@universities_bp.route("/universities/<int:uid>/history", methods=["GET"])
def university_history(uid):
    """History rows for one university, newest first."""
    university_service.get_university(uid)
    view_id, err = int_arg("view_id")
    if err:
        return err
    column_key = request.args.get("column_key") or None
    return jsonify(history_service.list_history(uid, view_id=view_id, column_key=column_key)), 200
