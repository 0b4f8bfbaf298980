"""
Cell format sidecar.

Formats share the value store's (university_id, column_key, view_id)
coordinates but live in their own table: setting or clearing a format never
touches a value or its history.

Merge rule for ``set_format``:
    key omitted       → stored attribute unchanged
    key present, null → attribute cleared
    key present       → attribute set (bold/italic/underline must be booleans)

A cell whose attributes are all falsy after the merge has no row.
"""

import logging

from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import (
    BOOLEAN_FORMAT_ATTRIBUTES,
    FORMAT_ATTRIBUTES,
    CellFormat,
    University,
    View,
)

logger = logging.getLogger(__name__)

# camelCase and snake_case both resolve to the column attribute.
_ATTRIBUTE_ALIASES = {
    **{attr: attr for attr in FORMAT_ATTRIBUTES},
    **{wire: attr for attr, wire in FORMAT_ATTRIBUTES.items()},
}


def format_key(university_id, column_key) -> str:
    return f"{university_id}_{column_key}"


def _normalise(attrs: dict) -> dict:
    unknown = sorted(k for k in attrs if k not in _ATTRIBUTE_ALIASES)
    if unknown:
        raise ValidationError(
            f"Unknown format attribute(s): {', '.join(unknown)}",
            details={k: "unknown attribute" for k in unknown},
        )
    out = {}
    for key, val in attrs.items():
        attr = _ATTRIBUTE_ALIASES[key]
        if val is None:
            out[attr] = None
        elif attr in BOOLEAN_FORMAT_ATTRIBUTES:
            if not isinstance(val, bool):
                raise ValidationError(
                    f"{key} must be a boolean", details={key: "must be a boolean"},
                )
            out[attr] = val
        else:
            out[attr] = str(val)
    return out


def _format_query(university_id, column_key, view_id):
    return CellFormat.query.filter_by(
        university_id=university_id, column_key=column_key, view_id=view_id,
    )


def get_formats_for_view(view_id: int) -> dict:
    """Return {"{university_id}_{column_key}": {camelCase attrs}} for a view."""
    rows = CellFormat.query.filter_by(view_id=view_id).all()
    return {format_key(f.university_id, f.column_key): f.attributes() for f in rows}


def get_format(university_id: int, column_key: str, view_id: int) -> dict | None:
    fmt = _format_query(university_id, column_key, view_id).first()
    return fmt.attributes() if fmt else None


def set_format(university_id: int, column_key: str, view_id: int, attrs: dict) -> dict | None:
    """Merge ``attrs`` into the cell's format.

    Args:
        university_id: Row subject.
        column_key: Column key of the cell.
        view_id: Owning view.
        attrs: Partial attribute map, snake_case or camelCase keys.

    Returns:
        The resulting camelCase attribute dict, or None when the merge left
        the cell without any formatting (the row is removed).

    Raises:
        ValidationError: On unknown attribute names or a missing column_key.
        NotFoundError: If the university or view does not exist.
    """
    if not column_key:
        raise ValidationError("column_key is required", details={"column_key": "required"})
    changes = _normalise(attrs or {})
    if db.session.get(University, university_id) is None:
        raise NotFoundError(resource="University", resource_id=university_id)
    if db.session.get(View, view_id) is None:
        raise NotFoundError(resource="View", resource_id=view_id)

    fmt = _format_query(university_id, column_key, view_id).first()
    if fmt is None:
        fmt = CellFormat(university_id=university_id, column_key=column_key, view_id=view_id)
        for attr in BOOLEAN_FORMAT_ATTRIBUTES:
            setattr(fmt, attr, False)
        db.session.add(fmt)

    for attr, val in changes.items():
        setattr(fmt, attr, val)

    if fmt.is_empty():
        if fmt.id is not None:
            db.session.delete(fmt)
        else:
            db.session.expunge(fmt)
        db.session.commit()
        logger.info("Cell format cleared u=%s key=%s view=%s", university_id, column_key, view_id)
        return None

    db.session.commit()
    logger.info("Cell format set u=%s key=%s view=%s", university_id, column_key, view_id)
    return fmt.attributes()


def clear_format(university_id: int, column_key: str, view_id: int) -> bool:
    """Delete a cell's format. No-op (False) when the cell has none."""
    count = _format_query(university_id, column_key, view_id).delete(synchronize_session=False)
    db.session.commit()
    if count:
        logger.info("Cell format deleted u=%s key=%s view=%s", university_id, column_key, view_id)
    return bool(count)


# ── Cascade helpers (callers own the commit) ────────────────────────────────

def delete_formats_for_column(view_id: int, column_key: str) -> int:
    return CellFormat.query.filter_by(view_id=view_id, column_key=column_key).delete(
        synchronize_session=False
    )


def delete_formats_for_university(university_id: int) -> int:
    return CellFormat.query.filter_by(university_id=university_id).delete(
        synchronize_session=False
    )


def delete_formats_for_view(view_id: int) -> int:
    return CellFormat.query.filter_by(view_id=view_id).delete(synchronize_session=False)
