"""
Schema initialisation for the dashboard store.

``ensure_schema`` is safe to run on every startup: tables are created only
when missing, and columns the models declare but the live tables lack are
added with ``ALTER TABLE ... ADD COLUMN``. Nothing is ever dropped or
renamed.
"""

import logging

import sqlalchemy as sa
from sqlalchemy.exc import OperationalError, ProgrammingError

from unidash.core.exceptions import StoreUnavailableError
from unidash.models import db

logger = logging.getLogger(__name__)


def _import_models():
    # Registers every table on db.metadata before create_all runs.
    from unidash.models import sheet, tracker  # noqa: F401


def _live_columns(conn):
    """Return {table_name: set(column names)} for the tables that exist."""
    inspector = sa.inspect(conn)
    return {
        name: {c["name"] for c in inspector.get_columns(name)}
        for name in inspector.get_table_names()
    }


def _column_ddl(col, dialect):
    try:
        col_type = col.type.compile(dialect=dialect)
    except sa.exc.CompileError:
        col_type = "TEXT"
    default = ""
    if col.server_default is not None:
        default = f" DEFAULT {col.server_default.arg}"
    elif col.default is not None and col.default.is_scalar:
        arg = col.default.arg
        if isinstance(arg, bool):
            literal = int(arg) if dialect.name == "sqlite" else str(arg).upper()
            default = f" DEFAULT {literal}"
        elif isinstance(arg, (int, float)):
            default = f" DEFAULT {arg}"
        else:
            default = f" DEFAULT '{arg}'"
    # Added columns are always nullable: existing rows have no value for them.
    return f'"{col.name}" {col_type}{default}'


def _add_missing_columns(existing):
    added = []
    dialect = db.engine.dialect
    for table in db.metadata.sorted_tables:
        live = existing.get(table.name)
        if live is None:
            continue
        for col in table.columns:
            if col.name in live:
                continue
            sql = f'ALTER TABLE "{table.name}" ADD COLUMN {_column_ddl(col, dialect)}'
            try:
                with db.engine.begin() as conn:
                    conn.execute(sa.text(sql))
            except (OperationalError, ProgrammingError) as exc:
                # A concurrent initialiser got there first.
                if "exist" in str(exc).lower() or "duplicate" in str(exc).lower():
                    logger.warning("Column %s.%s already exists, skipping", table.name, col.name)
                    continue
                raise
            added.append(f"{table.name}.{col.name}")
    return added


def ensure_schema():
    """Create missing tables and add missing columns.

    Returns:
        {"created_tables": [...], "added_columns": ["table.column", ...]}

    Raises:
        StoreUnavailableError: If the database cannot be reached.
    """
    _import_models()
    try:
        with db.engine.connect() as conn:
            before = set(sa.inspect(conn).get_table_names())
    except OperationalError as exc:
        logger.error("Schema init failed, store unreachable: %s", exc)
        raise StoreUnavailableError(str(exc)) from exc

    try:
        db.create_all()
    except (OperationalError, ProgrammingError) as exc:
        if "already exists" not in str(exc).lower():
            raise
        logger.warning("create_all raced with another initialiser: %s", exc)

    with db.engine.connect() as conn:
        existing = _live_columns(conn)
    added = _add_missing_columns(existing)

    created = sorted(
        t.name for t in db.metadata.sorted_tables
        if t.name not in before and t.name in existing
    )
    if created:
        logger.info("Schema tables created: %s", ", ".join(created))
    if added:
        logger.info("Schema columns added: %s", ", ".join(added))
    return {"created_tables": created, "added_columns": added}


def describe_schema():
    """Return {table: sorted column names} for every managed table."""
    _import_models()
    managed = {t.name for t in db.metadata.sorted_tables}
    with db.engine.connect() as conn:
        live = _live_columns(conn)
    return {
        name: sorted(cols)
        for name, cols in sorted(live.items())
        if name in managed
    }
