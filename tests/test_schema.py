"""Schema initialisation: idempotent, additive-only."""

import sqlalchemy as sa

from unidash.models import db
from unidash.services.schema_service import describe_schema, ensure_schema


MANAGED_TABLES = {
    "views", "universities", "columns", "values", "values_history", "cell_formats",
    "applications", "tasks", "grades", "documents",
}


def _model_columns(table_name):
    return sorted(c.name for c in db.metadata.tables[table_name].columns)


class TestEnsureSchema:
    def test_all_tables_present(self):
        assert set(describe_schema()) == MANAGED_TABLES

    def test_second_run_is_a_noop(self):
        before = describe_schema()
        report = ensure_schema()
        assert report == {"created_tables": [], "added_columns": []}
        assert describe_schema() == before

    def test_live_columns_match_models(self):
        schema = describe_schema()
        for name in MANAGED_TABLES:
            assert schema[name] == _model_columns(name)

    def test_missing_columns_are_added(self):
        db.session.remove()
        with db.engine.begin() as conn:
            conn.execute(sa.text("DROP TABLE cell_formats"))
            conn.execute(sa.text(
                "CREATE TABLE cell_formats ("
                " id INTEGER PRIMARY KEY,"
                " university_id INTEGER NOT NULL,"
                " column_key VARCHAR(100) NOT NULL,"
                " view_id INTEGER NOT NULL)"
            ))

        report = ensure_schema()

        assert report["created_tables"] == []
        assert "cell_formats.background_color" in report["added_columns"]
        assert "cell_formats.bold" in report["added_columns"]
        assert describe_schema()["cell_formats"] == _model_columns("cell_formats")

    def test_missing_table_is_created(self):
        db.session.remove()
        with db.engine.begin() as conn:
            conn.execute(sa.text("DROP TABLE documents"))

        report = ensure_schema()

        assert report["created_tables"] == ["documents"]
        assert "documents" in describe_schema()

    def test_existing_rows_survive(self, client, university):
        db.session.remove()
        ensure_schema()
        assert client.get(f"/api/v1/universities/{university['id']}").status_code == 200
