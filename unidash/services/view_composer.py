"""
View composer: turns the sparse EAV store into dense spreadsheet rows.

For a view, every university gets exactly one row, and every visible column
key is present in every row (None when no value is stored). Values are
indexed once by (university_id, column_key), so composition is linear in
universities × visible columns plus stored values.
"""

import logging

from unidash.core import column_types
from unidash.core.exceptions import NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import CellValue, University, View
from unidash.services import column_service

logger = logging.getLogger(__name__)

COMPOSE_MODES = ("raw", "typed", "display")


def _value_index(view_id: int) -> dict[tuple[int, str], str | None]:
    rows = db.session.query(
        CellValue.university_id, CellValue.column_key, CellValue.value,
    ).filter(CellValue.view_id == view_id)
    return {(uid, key): value for uid, key, value in rows}


def _render(mode, column, text):
    if mode == "typed":
        return column_types.parse(column.type, text)
    if mode == "display":
        return column_types.format_display(column.type, text)
    return text


def compose_view(view_id: int, mode: str = "raw") -> dict:
    """Assemble the dense grid for one view.

    Args:
        view_id: View to compose.
        mode: "raw" returns stored text, "typed" parses each cell by its
            column type and adds a per-row ``issues`` list, "display"
            formats each cell for presentation.

    Returns:
        {"view": {...}, "universities": [...], "columns": [...],
         "data": [row, ...]} where each row is the university's fields
        followed by one entry per visible column key.

    Raises:
        NotFoundError: If the view does not exist.
        ValidationError: On an unknown mode.
    """
    if mode not in COMPOSE_MODES:
        raise ValidationError(
            f"Unknown mode '{mode}'", details={"mode": f"one of {', '.join(COMPOSE_MODES)}"}
        )
    view = db.session.get(View, view_id)
    if view is None:
        raise NotFoundError(resource="View", resource_id=view_id)

    universities = University.query.order_by(University.id).all()
    columns = column_service.visible_columns(view_id)
    values = _value_index(view_id)

    data = []
    for uni in universities:
        row = uni.to_dict()
        issues = []
        for col in columns:
            text = values.get((uni.id, col.key))
            row[col.key] = _render(mode, col, text)
            if mode == "typed":
                problem = column_types.validate(col.type, text, col.options)
                if problem:
                    issues.append({"column_key": col.key, "message": problem})
        if mode == "typed":
            row["issues"] = issues
        data.append(row)

    logger.debug(
        "View composed id=%s mode=%s rows=%s columns=%s",
        view_id, mode, len(data), len(columns),
    )
    return {
        "view": view.to_dict(),
        "universities": [u.to_dict() for u in universities],
        "columns": [c.to_dict() for c in columns],
        "data": data,
    }
