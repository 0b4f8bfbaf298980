"""initial_dashboard_schema

Create the spreadsheet tables (views, universities, columns, values,
values_history, cell_formats) and the tracker tables (applications, tasks,
grades, documents).

Skips tables that already exist so databases initialised by
ensure_schema() at startup can be stamped and upgraded.

Revision ID: 5d1e0a7c3b21
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "5d1e0a7c3b21"
down_revision = None
branch_labels = None
depends_on = None


def _cell_coordinates():
    return [
        sa.Column("university_id", sa.Integer(), nullable=False),
        sa.Column("column_key", sa.String(length=100), nullable=False),
        sa.Column("view_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["view_id"], ["views.id"], ondelete="CASCADE"),
    ]


def upgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())

    if "views" not in existing:
        op.create_table(
            "views",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if "universities" not in existing:
        op.create_table(
            "universities",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=300), nullable=False),
            sa.Column("country", sa.String(length=100), nullable=True),
            sa.Column("state", sa.String(length=100), nullable=True),
            sa.Column("city", sa.String(length=100), nullable=True),
            sa.Column("type", sa.String(length=50), nullable=True),
            sa.Column("website", sa.String(length=500), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    if "columns" not in existing:
        op.create_table(
            "columns",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("view_id", sa.Integer(), nullable=False),
            sa.Column("key", sa.String(length=100), nullable=False),
            sa.Column("label", sa.String(length=200), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="text"),
            sa.Column("section", sa.String(length=100), nullable=True),
            sa.Column("select_options", sa.Text(), nullable=True),
            sa.Column("ai_instructions", sa.Text(), nullable=True),
            sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["view_id"], ["views.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("view_id", "key", name="uq_columns_view_key"),
        )
        op.create_index("idx_columns_view", "columns", ["view_id"])

    if "values" not in existing:
        op.create_table(
            "values",
            sa.Column("id", sa.Integer(), nullable=False),
            *_cell_coordinates(),
            sa.Column("value", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("university_id", "column_key", "view_id", name="uq_values_cell"),
        )
        op.create_index("idx_values_view", "values", ["view_id"])

    if "values_history" not in existing:
        op.create_table(
            "values_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("university_id", sa.Integer(), nullable=False),
            sa.Column("column_key", sa.String(length=100), nullable=False),
            sa.Column("view_id", sa.Integer(), nullable=True),
            sa.Column("old_value", sa.Text(), nullable=True),
            sa.Column("new_value", sa.Text(), nullable=True),
            sa.Column("source", sa.Text(), nullable=True),
            sa.Column("confidence", sa.Float(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["view_id"], ["views.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "idx_history_university", "values_history", ["university_id", "timestamp"]
        )

    if "cell_formats" not in existing:
        op.create_table(
            "cell_formats",
            sa.Column("id", sa.Integer(), nullable=False),
            *_cell_coordinates(),
            sa.Column("background_color", sa.String(length=50), nullable=True),
            sa.Column("text_color", sa.String(length=50), nullable=True),
            sa.Column("bold", sa.Boolean(), nullable=True),
            sa.Column("italic", sa.Boolean(), nullable=True),
            sa.Column("underline", sa.Boolean(), nullable=True),
            sa.Column("font_size", sa.String(length=20), nullable=True),
            sa.Column("text_align", sa.String(length=20), nullable=True),
            sa.Column("border_color", sa.String(length=50), nullable=True),
            sa.Column("border_style", sa.String(length=20), nullable=True),
            sa.Column("border_width", sa.String(length=20), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "university_id", "column_key", "view_id", name="uq_cell_formats_cell"
            ),
        )
        op.create_index("idx_cell_formats_view", "cell_formats", ["view_id"])

    if "applications" not in existing:
        op.create_table(
            "applications",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=300), nullable=True),
            sa.Column("type", sa.String(length=50), nullable=False),
            sa.Column("university_id", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="researching"),
            sa.Column("deadline", sa.String(length=10), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["university_id"], ["universities.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )

    if "tasks" not in existing:
        op.create_table(
            "tasks",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("title", sa.String(length=500), nullable=False),
            sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("due_date", sa.String(length=10), nullable=True),
            sa.Column("priority", sa.String(length=10), nullable=False, server_default="medium"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    if "grades" not in existing:
        op.create_table(
            "grades",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("course", sa.String(length=300), nullable=False),
            sa.Column("grade", sa.String(length=20), nullable=False),
            sa.Column("credits", sa.Float(), nullable=False),
            sa.Column("semester", sa.String(length=50), nullable=False),
            sa.Column("school", sa.String(length=300), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    if "documents" not in existing:
        op.create_table(
            "documents",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=500), nullable=False),
            sa.Column("type", sa.String(length=100), nullable=True),
            sa.Column("size", sa.Integer(), nullable=True),
            sa.Column("file_data", sa.Text(), nullable=True),
            sa.Column("tags", sa.Text(), nullable=True),
            sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )


def downgrade():
    for table in (
        "documents", "grades", "tasks", "applications",
        "cell_formats", "values_history", "values", "columns", "universities", "views",
    ):
        op.drop_table(table)
