"""
Append-only value history.

Rows are written only for changes that carry provenance (AI refresh, or a
client posting to /history). They are never updated or pruned; the only way
a row disappears is its university or view being deleted.
"""

import logging

from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import University, ValueHistory, View

logger = logging.getLogger(__name__)


def _check_confidence(confidence):
    if confidence is None:
        return None
    try:
        conf = float(confidence)
    except (TypeError, ValueError):
        raise ValidationError(
            "confidence must be a number", details={"confidence": "not a number"}
        )
    if not 0.0 <= conf <= 1.0:
        raise ValidationError(
            "confidence must be between 0 and 1", details={"confidence": "out of range"}
        )
    return conf


def record_change(
    university_id: int,
    column_key: str,
    view_id: int | None,
    old_value,
    new_value,
    source: str | None = None,
    confidence: float | None = None,
    notes: str | None = None,
    *,
    commit: bool = True,
) -> dict:
    """Append one history row.

    Raises:
        ValidationError: If column_key is empty or confidence is outside 0..1.
        NotFoundError: If the university does not exist or view_id names
            a view that does not exist.
    """
    if not column_key:
        raise ValidationError("column_key is required", details={"column_key": "required"})
    conf = _check_confidence(confidence)
    if db.session.get(University, university_id) is None:
        raise NotFoundError(resource="University", resource_id=university_id)
    if view_id is not None and db.session.get(View, view_id) is None:
        raise NotFoundError(resource="View", resource_id=view_id)

    entry = ValueHistory(
        university_id=university_id,
        column_key=column_key,
        view_id=view_id,
        old_value=old_value,
        new_value=new_value,
        source=source,
        confidence=conf,
        notes=notes,
    )
    db.session.add(entry)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    logger.info(
        "History recorded id=%s u=%s key=%s source=%s",
        entry.id, university_id, column_key, source,
    )
    return entry.to_dict()


def list_history(
    university_id: int,
    view_id: int | None = None,
    column_key: str | None = None,
) -> list[dict]:
    """Return history for a university, newest first."""
    q = ValueHistory.query.filter_by(university_id=university_id)
    if view_id is not None:
        q = q.filter_by(view_id=view_id)
    if column_key:
        q = q.filter_by(column_key=column_key)
    q = q.order_by(ValueHistory.timestamp.desc(), ValueHistory.id.desc())
    return [h.to_dict() for h in q.all()]


def delete_history_for_university(university_id: int) -> int:
    return ValueHistory.query.filter_by(university_id=university_id).delete(
        synchronize_session=False
    )


def delete_history_for_view(view_id: int) -> int:
    return ValueHistory.query.filter_by(view_id=view_id).delete(synchronize_session=False)
