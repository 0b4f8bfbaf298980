"""
EAV value store.

One row per (university_id, column_key, view_id). Cells are addressed by the
column's string key, never by column id, and nothing here consults the
column catalogue: a value may exist for a key no column currently declares.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from unidash.core.column_types import to_storage
from unidash.core.exceptions import NotFoundError
from unidash.models import db
from unidash.models.sheet import CellValue, University, View

logger = logging.getLogger(__name__)

_CELL_KEYS = ["university_id", "column_key", "view_id"]


def _require_coordinates(university_id: int, view_id: int) -> None:
    if db.session.get(University, university_id) is None:
        raise NotFoundError(resource="University", resource_id=university_id)
    if db.session.get(View, view_id) is None:
        raise NotFoundError(resource="View", resource_id=view_id)


def _cell_query(university_id, column_key, view_id):
    return CellValue.query.filter_by(
        university_id=university_id, column_key=column_key, view_id=view_id,
    )


def get_cell(university_id: int, column_key: str, view_id: int) -> dict | None:
    """Return the stored cell or None when it was never written."""
    cell = _cell_query(university_id, column_key, view_id).first()
    return cell.to_dict() if cell else None


def get_cell_value(university_id: int, column_key: str, view_id: int) -> str | None:
    cell = _cell_query(university_id, column_key, view_id).first()
    return cell.value if cell else None


def list_cells_for_view(view_id: int) -> list[dict]:
    cells = (
        CellValue.query.filter_by(view_id=view_id)
        .order_by(CellValue.university_id, CellValue.id)
        .all()
    )
    return [c.to_dict() for c in cells]


def _upsert_statement(dialect_name, row, now):
    insert = {"sqlite": sqlite_insert, "postgresql": pg_insert}[dialect_name]
    stmt = insert(CellValue).values(**row, created_at=now, updated_at=now)
    return stmt.on_conflict_do_update(
        index_elements=_CELL_KEYS,
        set_={"value": stmt.excluded.value, "updated_at": now},
    )


def upsert_cell(
    university_id: int,
    column_key: str,
    view_id: int,
    value,
    *,
    commit: bool = True,
) -> dict:
    """Insert or replace one cell and refresh its updated_at.

    On SQLite and PostgreSQL this is a single INSERT ... ON CONFLICT DO
    UPDATE, so two concurrent writers can never produce a duplicate row;
    the last one wins. Other engines fall back to select-then-write.

    Args:
        university_id: Row subject.
        column_key: Column key; not checked against the view's columns.
        view_id: Owning view.
        value: Any JSON-ish value, stored as text (see ``to_storage``).
        commit: Commit the session. Batch callers pass False and commit
            themselves.

    Returns:
        Serialized cell dict.

    Raises:
        NotFoundError: If the university or view does not exist.
    """
    _require_coordinates(university_id, view_id)
    text = to_storage(value)
    now = datetime.now(timezone.utc)
    row = {"university_id": university_id, "column_key": column_key, "view_id": view_id, "value": text}

    dialect_name = db.engine.dialect.name
    if dialect_name in ("sqlite", "postgresql"):
        db.session.execute(_upsert_statement(dialect_name, row, now))
    else:
        cell = _cell_query(university_id, column_key, view_id).first()
        if cell is None:
            db.session.add(CellValue(**row, created_at=now, updated_at=now))
        else:
            cell.value = text
            cell.updated_at = now

    if commit:
        db.session.commit()
    else:
        db.session.flush()

    cell = _cell_query(university_id, column_key, view_id).populate_existing().first()
    logger.debug("Cell upserted u=%s key=%s view=%s", university_id, column_key, view_id)
    return cell.to_dict()


def delete_cell(university_id: int, column_key: str, view_id: int) -> bool:
    """Remove one cell. Returns False when there was nothing to delete."""
    count = _cell_query(university_id, column_key, view_id).delete(synchronize_session=False)
    db.session.commit()
    if count:
        logger.info("Cell deleted u=%s key=%s view=%s", university_id, column_key, view_id)
    return bool(count)


# ── Cascade helpers (callers own the commit) ────────────────────────────────

def delete_cells_for_column(view_id: int, column_key: str) -> int:
    return CellValue.query.filter_by(view_id=view_id, column_key=column_key).delete(
        synchronize_session=False
    )


def delete_cells_for_university(university_id: int) -> int:
    return CellValue.query.filter_by(university_id=university_id).delete(
        synchronize_session=False
    )


def delete_cells_for_view(view_id: int) -> int:
    return CellValue.query.filter_by(view_id=view_id).delete(synchronize_session=False)
