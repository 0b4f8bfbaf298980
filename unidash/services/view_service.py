"""
Views: named spreadsheet tabs.

A new view either copies another view (its columns with the same keys and
all non-null values) or starts with the starter columns filled from each
university's own fields. Deleting a view removes every column, value,
format and history row scoped to it.
"""

import logging

from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import CellValue, SheetColumn, University, View
from unidash.services import (
    cell_format_service,
    column_service,
    history_service,
    value_service,
)

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = [
    {"key": "nr", "label": "Nr", "type": "number", "pinned": True, "order_index": 0},
    {"key": "uni_name", "label": "Uni Name", "type": "text", "pinned": True, "order_index": 1},
    {"key": "cntr", "label": "Country", "type": "text", "pinned": True, "order_index": 2},
    {
        "key": "uni_type", "label": "Type", "type": "select",
        "select_options": ["Public", "Private"], "order_index": 3,
    },
    {"key": "web", "label": "Web", "type": "link", "order_index": 4},
]

# starter column key → University attribute it is filled from
_DEFAULT_SOURCES = {"uni_name": "name", "cntr": "country", "uni_type": "type", "web": "website"}


def _clean_name(name) -> str:
    if name is not None and not isinstance(name, str):
        raise ValidationError("name must be a string", details={"name": "must be a string"})
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("name is required", details={"name": "required"})
    return cleaned


def _ensure_unique(name: str, exclude_id: int | None = None) -> None:
    q = View.query.filter_by(name=name)
    if exclude_id is not None:
        q = q.filter(View.id != exclude_id)
    if q.first():
        raise ValidationError(f"View '{name}' already exists", details={"name": "duplicate"})


def list_views() -> list[dict]:
    return [v.to_dict() for v in View.query.order_by(View.created_at, View.id).all()]


def get_view(view_id: int) -> dict:
    view = db.session.get(View, view_id)
    if view is None:
        raise NotFoundError(resource="View", resource_id=view_id)
    return view.to_dict()


def _copy_from(source_id: int, target_id: int) -> None:
    source_columns = SheetColumn.query.filter_by(view_id=source_id).order_by(
        SheetColumn.order_index, SheetColumn.id
    ).all()
    for col in source_columns:
        data = col.to_dict()
        data.pop("id")
        data.pop("view_id")
        column_service.create_column(target_id, data, commit=False)

    keys = {c.key for c in source_columns}
    cells = CellValue.query.filter(
        CellValue.view_id == source_id, CellValue.value.isnot(None),
    ).all()
    for cell in cells:
        if cell.column_key in keys:
            db.session.add(CellValue(
                university_id=cell.university_id,
                column_key=cell.column_key,
                view_id=target_id,
                value=cell.value,
            ))


def _populate_defaults(target_id: int) -> None:
    for definition in DEFAULT_COLUMNS:
        column_service.create_column(target_id, definition, commit=False)

    for index, uni in enumerate(University.query.order_by(University.id).all(), start=1):
        filled = {"nr": str(index)}
        for key, attr in _DEFAULT_SOURCES.items():
            filled[key] = getattr(uni, attr)
        for key, text in filled.items():
            if text is not None:
                db.session.add(CellValue(
                    university_id=uni.id, column_key=key, view_id=target_id, value=text,
                ))


def create_view(name: str, copy_from_view_id: int | None = None) -> dict:
    """Create a view, optionally as a copy of another.

    Args:
        name: Unique, non-empty view name.
        copy_from_view_id: View whose columns and non-null values are copied.
            When omitted the starter columns are created instead.

    Returns:
        Serialized view dict.

    Raises:
        ValidationError: If the name is empty or already taken.
        NotFoundError: If copy_from_view_id does not exist.
    """
    name = _clean_name(name)
    _ensure_unique(name)
    if copy_from_view_id is not None and db.session.get(View, copy_from_view_id) is None:
        raise NotFoundError(resource="View", resource_id=copy_from_view_id)

    view = View(name=name)
    db.session.add(view)
    db.session.flush()
    try:
        if copy_from_view_id is not None:
            _copy_from(copy_from_view_id, view.id)
        else:
            _populate_defaults(view.id)
    except Exception:
        db.session.rollback()
        raise
    db.session.commit()
    logger.info("View created id=%s name=%s copy_from=%s", view.id, name, copy_from_view_id)
    return view.to_dict()


def rename_view(view_id: int, name: str) -> dict:
    view = db.session.get(View, view_id)
    if view is None:
        raise NotFoundError(resource="View", resource_id=view_id)
    name = _clean_name(name)
    _ensure_unique(name, exclude_id=view_id)
    view.name = name
    db.session.commit()
    logger.info("View renamed id=%s name=%s", view_id, name)
    return view.to_dict()


def delete_view(view_id: int) -> bool:
    """Delete a view and everything scoped to it. No-op when absent."""
    view = db.session.get(View, view_id)
    if view is None:
        return False
    values = value_service.delete_cells_for_view(view_id)
    formats = cell_format_service.delete_formats_for_view(view_id)
    history = history_service.delete_history_for_view(view_id)
    SheetColumn.query.filter_by(view_id=view_id).delete(synchronize_session=False)
    db.session.delete(view)
    db.session.commit()
    logger.info(
        "View deleted id=%s values=%s formats=%s history=%s",
        view_id, values, formats, history,
    )
    return True
