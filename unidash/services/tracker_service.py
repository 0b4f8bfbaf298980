"""
Tracker CRUD: applications, tasks, grades and documents.

These records sit beside the spreadsheet and never touch the EAV tables.
Applications, tasks and grades carry client-supplied string ids and are
saved insert-or-replace; documents get integer ids from the database.
"""

import json
import logging
import uuid

from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import University
from unidash.models.tracker import (
    APPLICATION_STATUSES,
    TASK_PRIORITIES,
    Application,
    Document,
    Grade,
    Task,
)

logger = logging.getLogger(__name__)

_APPLICATION_FIELDS = ("name", "type", "university_id", "status", "deadline", "notes")
_TASK_FIELDS = ("title", "completed", "due_date", "priority")
_GRADE_FIELDS = ("course", "grade", "credits", "semester", "school")


def _require(data: dict, fields: tuple[str, ...]) -> None:
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}",
            details={f: "required" for f in missing},
        )


def _check_choice(field: str, value, allowed: tuple[str, ...]) -> None:
    if value is not None and value not in allowed:
        raise ValidationError(
            f"{field} must be one of {', '.join(allowed)}",
            details={field: "invalid choice"},
        )


def _check_university(university_id) -> None:
    if university_id is not None and db.session.get(University, university_id) is None:
        raise NotFoundError(resource="University", resource_id=university_id)


def _apply(obj, data: dict, fields: tuple[str, ...]) -> None:
    for field in fields:
        if field in data:
            setattr(obj, field, data[field])


def _save(model, data: dict, fields: tuple[str, ...]):
    """Insert-or-replace by the client-supplied id (generated when absent)."""
    record_id = str(data.get("id") or uuid.uuid4())
    obj = db.session.get(model, record_id)
    if obj is None:
        obj = model(id=record_id)
        db.session.add(obj)
    _apply(obj, data, fields)
    db.session.commit()
    logger.info("%s saved id=%s", model.__name__, record_id)
    return obj


def _update(model, record_id: str, data: dict, fields: tuple[str, ...]):
    obj = db.session.get(model, record_id)
    if obj is None:
        raise NotFoundError(resource=model.__name__, resource_id=record_id)
    _apply(obj, data, fields)
    db.session.commit()
    logger.info("%s updated id=%s", model.__name__, record_id)
    return obj


def _delete(model, record_id) -> bool:
    obj = db.session.get(model, record_id)
    if obj is None:
        return False
    db.session.delete(obj)
    db.session.commit()
    logger.info("%s deleted id=%s", model.__name__, record_id)
    return True


# ── Applications ────────────────────────────────────────────────────────────

def list_applications() -> list[dict]:
    rows = Application.query.order_by(Application.created_at.desc(), Application.id).all()
    return [a.to_dict() for a in rows]


def save_application(data: dict) -> dict:
    """Create or replace an application.

    Raises:
        ValidationError: If type is missing or status is not a known status.
        NotFoundError: If university_id references a missing university.
    """
    _require(data, ("type",))
    data = {"status": "researching", **data}
    _check_choice("status", data["status"], APPLICATION_STATUSES)
    _check_university(data.get("university_id"))
    return _save(Application, data, _APPLICATION_FIELDS).to_dict()


def update_application(app_id: str, data: dict) -> dict:
    if "type" in data and not data["type"]:
        raise ValidationError("type cannot be empty", details={"type": "required"})
    _check_choice("status", data.get("status"), APPLICATION_STATUSES)
    _check_university(data.get("university_id"))
    return _update(Application, app_id, data, _APPLICATION_FIELDS).to_dict()


def delete_application(app_id: str) -> bool:
    return _delete(Application, app_id)


# ── Tasks ───────────────────────────────────────────────────────────────────

def list_tasks() -> list[dict]:
    return [t.to_dict() for t in Task.query.order_by(Task.created_at.desc(), Task.id).all()]


def save_task(data: dict) -> dict:
    _require(data, ("title",))
    data = {"priority": "medium", "completed": False, **data}
    _check_choice("priority", data["priority"], TASK_PRIORITIES)
    data["completed"] = bool(data["completed"])
    return _save(Task, data, _TASK_FIELDS).to_dict()


def update_task(task_id: str, data: dict) -> dict:
    if "title" in data and not data["title"]:
        raise ValidationError("title cannot be empty", details={"title": "required"})
    _check_choice("priority", data.get("priority"), TASK_PRIORITIES)
    if "completed" in data:
        data = {**data, "completed": bool(data["completed"])}
    return _update(Task, task_id, data, _TASK_FIELDS).to_dict()


def delete_task(task_id: str) -> bool:
    return _delete(Task, task_id)


# ── Grades ──────────────────────────────────────────────────────────────────

def _check_credits(data: dict) -> dict:
    if "credits" not in data:
        return data
    try:
        return {**data, "credits": float(data["credits"])}
    except (TypeError, ValueError):
        raise ValidationError("credits must be a number", details={"credits": "not a number"})


def list_grades() -> list[dict]:
    return [g.to_dict() for g in Grade.query.order_by(Grade.semester, Grade.course).all()]


def save_grade(data: dict) -> dict:
    _require(data, _GRADE_FIELDS)
    return _save(Grade, _check_credits(data), _GRADE_FIELDS).to_dict()


def update_grade(grade_id: str, data: dict) -> dict:
    return _update(Grade, grade_id, _check_credits(data), _GRADE_FIELDS).to_dict()


def delete_grade(grade_id: str) -> bool:
    return _delete(Grade, grade_id)


# ── Documents ───────────────────────────────────────────────────────────────

def list_documents(include_data: bool = False) -> list[dict]:
    rows = Document.query.order_by(Document.uploaded_at.desc(), Document.id.desc()).all()
    return [d.to_dict(include_data=include_data) for d in rows]


def get_document(doc_id: int) -> dict:
    doc = db.session.get(Document, doc_id)
    if doc is None:
        raise NotFoundError(resource="Document", resource_id=doc_id)
    return doc.to_dict(include_data=True)


def create_document(data: dict) -> dict:
    _require(data, ("name",))
    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise ValidationError("tags must be a list", details={"tags": "must be a list"})
    doc = Document(
        name=data["name"],
        type=data.get("type"),
        size=data.get("size"),
        file_data=data.get("file_data"),
        tags=json.dumps(tags),
    )
    db.session.add(doc)
    db.session.commit()
    logger.info("Document created id=%s name=%s", doc.id, doc.name)
    return doc.to_dict()


def update_document(doc_id: int, data: dict) -> dict:
    doc = db.session.get(Document, doc_id)
    if doc is None:
        raise NotFoundError(resource="Document", resource_id=doc_id)
    if "name" in data and not data["name"]:
        raise ValidationError("name cannot be empty", details={"name": "required"})
    if "tags" in data:
        if not isinstance(data["tags"], list):
            raise ValidationError("tags must be a list", details={"tags": "must be a list"})
        doc.tags = json.dumps(data["tags"])
    _apply(doc, data, ("name", "type", "size", "file_data"))
    db.session.commit()
    logger.info("Document updated id=%s", doc_id)
    return doc.to_dict()


def delete_document(doc_id: int) -> bool:
    return _delete(Document, doc_id)
