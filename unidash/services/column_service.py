"""
Column registry: typed column definitions per view.

Values and formats reference a column by (view_id, key). Because that is a
string reference and not a foreign key, deleting a column purges its cells
and formats here, in the same transaction.
"""

import json
import logging

from unidash.core.column_types import ColumnType
from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import SheetColumn, View
from unidash.services import cell_format_service, value_service

logger = logging.getLogger(__name__)

# composed rows already carry the university id under this key
RESERVED_KEYS = ("id",)

UPDATABLE_FIELDS = (
    "label", "type", "section", "select_options",
    "pinned", "visible", "order_index", "ai_instructions",
)


def _get_view_or_404(view_id: int) -> View:
    view = db.session.get(View, view_id)
    if view is None:
        raise NotFoundError(resource="View", resource_id=view_id)
    return view


def _get_column_or_404(column_id: int) -> SheetColumn:
    col = db.session.get(SheetColumn, column_id)
    if col is None:
        raise NotFoundError(resource="Column", resource_id=column_id)
    return col


def _parse_type(raw) -> str:
    try:
        return ColumnType.coerce(raw or "text").value
    except ValueError:
        raise ValidationError(
            f"Unknown column type '{raw}'",
            details={"type": f"must be one of {', '.join(ColumnType.values())}"},
        )


def _parse_options(raw) -> list[str]:
    """Accept a list or a JSON-encoded list of strings."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError(
                "select_options must be a list of strings",
                details={"select_options": "invalid JSON"},
            )
    if not isinstance(raw, list) or not all(isinstance(o, str) for o in raw):
        raise ValidationError(
            "select_options must be a list of strings",
            details={"select_options": "must be a list of strings"},
        )
    return raw


def _parse_order(raw) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(
            "order_index must be an integer", details={"order_index": "not an integer"}
        )


def list_columns(view_id: int, visible_only: bool = False) -> list[dict]:
    """Return the view's columns ordered by order_index, ties by creation.

    Raises:
        NotFoundError: If the view does not exist.
    """
    _get_view_or_404(view_id)
    return [c.to_dict() for c in _ordered_columns(view_id, visible_only)]


def _ordered_columns(view_id: int, visible_only: bool = False) -> list[SheetColumn]:
    q = SheetColumn.query.filter_by(view_id=view_id)
    if visible_only:
        q = q.filter(SheetColumn.visible.is_(True))
    return q.order_by(SheetColumn.order_index, SheetColumn.id).all()


def create_column(view_id: int, data: dict, *, commit: bool = True) -> dict:
    """Add a column to a view.

    Args:
        view_id: Owning view.
        data: Column fields. Only ``key`` is required; see module defaults.
        commit: Commit the session (view creation batches its columns).

    Returns:
        Serialized column dict.

    Raises:
        NotFoundError: If the view does not exist.
        ValidationError: If the key is empty, reserved or already used in this view,
            or the type is not a known column type.
    """
    _get_view_or_404(view_id)
    raw_key = data.get("key")
    if raw_key is not None and not isinstance(raw_key, str):
        raise ValidationError("key must be a string", details={"key": "must be a string"})
    key = (raw_key or "").strip()
    if not key:
        raise ValidationError("key is required", details={"key": "required"})
    if key in RESERVED_KEYS:
        raise ValidationError(
            f"Column key '{key}' is reserved", details={"key": "reserved"},
        )
    col_type = _parse_type(data.get("type"))

    duplicate = SheetColumn.query.filter_by(view_id=view_id, key=key).first()
    if duplicate:
        raise ValidationError(
            f"Column '{key}' already exists in view {view_id}",
            details={"key": "duplicate"},
        )

    col = SheetColumn(
        view_id=view_id,
        key=key,
        label=(data.get("label") or key),
        type=col_type,
        section=data.get("section") or "Basics",
        ai_instructions=data.get("ai_instructions") or None,
        pinned=bool(data.get("pinned", False)),
        visible=bool(data.get("visible", True)),
        order_index=_parse_order(data.get("order_index", 0)),
    )
    if col_type == ColumnType.SELECT.value:
        col.options = _parse_options(data.get("select_options"))
    db.session.add(col)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    logger.info("Column created id=%s view=%s key=%s", col.id, view_id, key)
    return col.to_dict()


def get_column(column_id: int) -> dict:
    return _get_column_or_404(column_id).to_dict()


def update_column(column_id: int, patch: dict) -> dict:
    """Apply a partial update. ``key`` and ``view_id`` are immutable.

    Raises:
        NotFoundError: If the column does not exist.
        ValidationError: On an attempt to change key/view_id or a bad type.
    """
    col = _get_column_or_404(column_id)

    for frozen in ("key", "view_id"):
        if frozen in patch and patch[frozen] != getattr(col, frozen):
            raise ValidationError(
                f"{frozen} cannot be changed", details={frozen: "immutable"}
            )

    if "type" in patch:
        col.type = _parse_type(patch["type"])
    if "label" in patch:
        col.label = patch["label"] or col.key
    if "section" in patch:
        col.section = patch["section"] or "Basics"
    if "ai_instructions" in patch:
        col.ai_instructions = patch["ai_instructions"] or None
    if "pinned" in patch:
        col.pinned = bool(patch["pinned"])
    if "visible" in patch:
        col.visible = bool(patch["visible"])
    if "order_index" in patch:
        col.order_index = _parse_order(patch["order_index"])
    if "select_options" in patch:
        col.options = _parse_options(patch["select_options"])
    if col.type != ColumnType.SELECT.value:
        col.select_options = None

    db.session.commit()
    logger.info("Column updated id=%s", column_id)
    return col.to_dict()


def delete_column(column_id: int) -> bool:
    """Delete a column and every value and format stored under its key.

    Returns:
        True if a column was deleted, False if the id did not exist.
    """
    col = db.session.get(SheetColumn, column_id)
    if col is None:
        return False
    view_id, key = col.view_id, col.key
    purged_values = value_service.delete_cells_for_column(view_id, key)
    purged_formats = cell_format_service.delete_formats_for_column(view_id, key)
    db.session.delete(col)
    db.session.commit()
    logger.info(
        "Column deleted id=%s view=%s key=%s values=%s formats=%s",
        column_id, view_id, key, purged_values, purged_formats,
    )
    return True


def reorder_columns(view_id: int, ordered_ids: list[int]) -> list[dict]:
    """Assign order_index 0..n-1 following ``ordered_ids``.

    Columns of the view not named in the list keep their relative order
    after the named ones.

    Raises:
        NotFoundError: If the view does not exist.
        ValidationError: If an id does not belong to the view.
    """
    _get_view_or_404(view_id)
    columns = {c.id: c for c in _ordered_columns(view_id)}
    try:
        ids = list(dict.fromkeys(int(i) for i in ordered_ids))
    except (TypeError, ValueError):
        raise ValidationError("column_ids must be a list of integers")
    foreign = [i for i in ids if i not in columns]
    if foreign:
        raise ValidationError(
            f"Columns {foreign} do not belong to view {view_id}",
            details={"column_ids": "foreign ids"},
        )
    rest = [cid for cid in columns if cid not in ids]
    for index, cid in enumerate(ids + rest):
        columns[cid].order_index = index
    db.session.commit()
    logger.info("Columns reordered view=%s count=%s", view_id, len(columns))
    return [c.to_dict() for c in _ordered_columns(view_id)]


def visible_columns(view_id: int) -> list[SheetColumn]:
    """ORM rows of the view's visible columns, in display order."""
    return _ordered_columns(view_id, visible_only=True)


def columns_by_key(view_id: int) -> dict[str, SheetColumn]:
    return {c.key: c for c in _ordered_columns(view_id)}
