"""Universities: the row subjects shared by every view."""

import logging

from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import UNIVERSITY_FIELDS, University
from unidash.models.tracker import Application
from unidash.services import cell_format_service, history_service, value_service

logger = logging.getLogger(__name__)


def _clean_name(name) -> str:
    if name is not None and not isinstance(name, str):
        raise ValidationError("name must be a string", details={"name": "must be a string"})
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("name is required", details={"name": "required"})
    return cleaned


def _get_or_404(university_id: int) -> University:
    uni = db.session.get(University, university_id)
    if uni is None:
        raise NotFoundError(resource="University", resource_id=university_id)
    return uni


def list_universities() -> list[dict]:
    return [u.to_dict() for u in University.query.order_by(University.id).all()]


def get_university(university_id: int) -> dict:
    return _get_or_404(university_id).to_dict()


def create_university(data: dict) -> dict:
    """Persist a new university.

    Raises:
        ValidationError: If name is missing, blank or not a string.
    """
    name = _clean_name(data.get("name"))
    uni = University(**{f: data.get(f) for f in UNIVERSITY_FIELDS if f != "name"}, name=name)
    db.session.add(uni)
    db.session.commit()
    logger.info("University created id=%s name=%s", uni.id, name)
    return uni.to_dict()


def update_university(university_id: int, data: dict) -> dict:
    """Apply a partial update; omitted fields are left unchanged."""
    uni = _get_or_404(university_id)
    if "name" in data:
        data = {**data, "name": _clean_name(data["name"])}
    for field in UNIVERSITY_FIELDS:
        if field in data:
            setattr(uni, field, data[field])
    db.session.commit()
    logger.info("University updated id=%s", university_id)
    return uni.to_dict()


def delete_university(university_id: int) -> bool:
    """Delete a university and its values, formats and history in every view.

    Returns:
        False if the id did not exist.
    """
    uni = db.session.get(University, university_id)
    if uni is None:
        return False
    values = value_service.delete_cells_for_university(university_id)
    formats = cell_format_service.delete_formats_for_university(university_id)
    history = history_service.delete_history_for_university(university_id)
    Application.query.filter_by(university_id=university_id).update(
        {"university_id": None}, synchronize_session=False
    )
    db.session.delete(uni)
    db.session.commit()
    logger.info(
        "University deleted id=%s values=%s formats=%s history=%s",
        university_id, values, formats, history,
    )
    return True
