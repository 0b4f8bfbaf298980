"""
Application tracker: applications, tasks, grades and documents.

Blueprint: tracker_bp
Prefix: /api/v1

Endpoints:
    GET/POST    /applications        -- List (newest first) / save (insert-or-replace by id)
    PUT/DELETE  /applications/<id>
    GET/POST    /tasks               -- List (newest first) / save
    PUT/DELETE  /tasks/<id>
    GET/POST    /grades              -- List (by semester, course) / save
    PUT/DELETE  /grades/<id>
    GET/POST    /documents           -- List (?include_data=true) / upload
    GET/PUT/DELETE /documents/<int:id>
"""

import logging

from flask import Blueprint, jsonify, request

from unidash.services import tracker_service
from unidash.utils.errors import register_error_handlers
from unidash.utils.helpers import json_body

logger = logging.getLogger(__name__)

tracker_bp = Blueprint("tracker", __name__, url_prefix="/api/v1")
register_error_handlers(tracker_bp)


# ── Applications ────────────────────────────────────────────────────────────

@tracker_bp.route("/applications", methods=["GET"])
def list_applications():
    return jsonify(tracker_service.list_applications()), 200


@tracker_bp.route("/applications", methods=["POST"])
def save_application():
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.save_application(data)), 201


@tracker_bp.route("/applications/<app_id>", methods=["PUT"])
def update_application(app_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.update_application(app_id, data)), 200


@tracker_bp.route("/applications/<app_id>", methods=["DELETE"])
def delete_application(app_id):
    return jsonify({"deleted": tracker_service.delete_application(app_id)}), 200


# ── Tasks ───────────────────────────────────────────────────────────────────

@tracker_bp.route("/tasks", methods=["GET"])
def list_tasks():
    return jsonify(tracker_service.list_tasks()), 200


@tracker_bp.route("/tasks", methods=["POST"])
def save_task():
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.save_task(data)), 201


@tracker_bp.route("/tasks/<task_id>", methods=["PUT"])
def update_task(task_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.update_task(task_id, data)), 200


@tracker_bp.route("/tasks/<task_id>", methods=["DELETE"])
def delete_task(task_id):
    return jsonify({"deleted": tracker_service.delete_task(task_id)}), 200


# ── Grades ──────────────────────────────────────────────────────────────────

@tracker_bp.route("/grades", methods=["GET"])
def list_grades():
    return jsonify(tracker_service.list_grades()), 200


@tracker_bp.route("/grades", methods=["POST"])
def save_grade():
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.save_grade(data)), 201


@tracker_bp.route("/grades/<grade_id>", methods=["PUT"])
def update_grade(grade_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.update_grade(grade_id, data)), 200


@tracker_bp.route("/grades/<grade_id>", methods=["DELETE"])
def delete_grade(grade_id):
    return jsonify({"deleted": tracker_service.delete_grade(grade_id)}), 200


# ── Documents ───────────────────────────────────────────────────────────────

@tracker_bp.route("/documents", methods=["GET"])
def list_documents():
    include_data = request.args.get("include_data", "false").lower() == "true"
    return jsonify(tracker_service.list_documents(include_data=include_data)), 200


@tracker_bp.route("/documents", methods=["POST"])
def create_document():
    data, err = json_body("name")
    if err:
        return err
    return jsonify(tracker_service.create_document(data)), 201


@tracker_bp.route("/documents/<int:doc_id>", methods=["GET"])
def get_document(doc_id):
    return jsonify(tracker_service.get_document(doc_id)), 200


@tracker_bp.route("/documents/<int:doc_id>", methods=["PUT"])
def update_document(doc_id):
    data, err = json_body()
    if err:
        return err
    return jsonify(tracker_service.update_document(doc_id, data)), 200


@tracker_bp.route("/documents/<int:doc_id>", methods=["DELETE"])
def delete_document(doc_id):
    return jsonify({"deleted": tracker_service.delete_document(doc_id)}), 200
