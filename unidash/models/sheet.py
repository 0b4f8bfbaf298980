"""
University Dashboard
Spreadsheet domain model.

Models:
    - View: a named spreadsheet tab (coordinate space for values)
    - University: the row subject, independent of any view
    - SheetColumn: typed column definition scoped to a view
    - CellValue: EAV cell keyed by (university_id, column_key, view_id)
    - ValueHistory: append-only provenance ledger for value changes
    - CellFormat: presentation sidecar on the same coordinate space

CellValue / CellFormat reference columns by their string ``key``, not by
``columns.id``. Integrity against the column catalogue is kept by the
column service's delete path, not by the database.
"""

import json
from datetime import datetime, timezone

from unidash.models import db


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


def _load_options(raw):
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return [str(o) for o in parsed] if isinstance(parsed, list) else []


# ── View ─────────────────────────────────────────────────────────────────────

class View(db.Model):
    """Named collection of columns; deleting it removes everything scoped to it."""

    __tablename__ = "views"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    columns = db.relationship(
        "SheetColumn",
        backref="view",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="dynamic",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<View {self.id} {self.name!r}>"


# ── University ───────────────────────────────────────────────────────────────

UNIVERSITY_FIELDS = ("name", "country", "state", "city", "type", "website", "notes")


class University(db.Model):
    """Row subject of every view."""

    __tablename__ = "universities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(300), nullable=False)
    country = db.Column(db.String(100))
    state = db.Column(db.String(100))
    city = db.Column(db.String(100))
    type = db.Column(db.String(50))
    website = db.Column(db.String(500))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "type": self.type,
            "website": self.website,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def descriptor(self):
        """Subset sent to the AI refresh collaborator."""
        return {
            "name": self.name,
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "type": self.type,
            "website": self.website,
        }

    def __repr__(self):
        return f"<University {self.id} {self.name!r}>"


# ── Column definition ────────────────────────────────────────────────────────

class SheetColumn(db.Model):
    """Typed field definition scoped to one view, identified by a stable key."""

    __tablename__ = "columns"
    __table_args__ = (
        db.UniqueConstraint("view_id", "key", name="uq_columns_view_key"),
        db.Index("idx_columns_view", "view_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    view_id = db.Column(
        db.Integer,
        db.ForeignKey("views.id", ondelete="CASCADE"),
        nullable=False,
    )
    key = db.Column(db.String(100), nullable=False)
    label = db.Column(db.String(200), nullable=False)
    type = db.Column(
        db.String(20), nullable=False, default="text",
        comment="text | number | date | link | boolean | select | long-text",
    )
    section = db.Column(db.String(100), default="Basics")
    select_options = db.Column(db.Text, comment="JSON list of option strings (select only)")
    ai_instructions = db.Column(db.Text)
    pinned = db.Column(db.Boolean, nullable=False, default=False)
    visible = db.Column(db.Boolean, nullable=False, default=True)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    @property
    def options(self):
        return _load_options(self.select_options)

    @options.setter
    def options(self, values):
        self.select_options = json.dumps(list(values)) if values else None

    def to_dict(self):
        return {
            "id": self.id,
            "view_id": self.view_id,
            "key": self.key,
            "label": self.label,
            "type": self.type,
            "section": self.section,
            "select_options": self.options if self.type == "select" else None,
            "ai_instructions": self.ai_instructions,
            "pinned": bool(self.pinned),
            "visible": bool(self.visible),
            "order_index": self.order_index,
            "created_at": _iso(self.created_at),
        }

    def descriptor(self):
        """Column descriptor sent to the AI refresh collaborator."""
        return {
            "key": self.key,
            "label": self.label or self.key,
            "type": self.type or "text",
            "section": self.section or "Basics",
            "aiInstructions": self.ai_instructions or None,
        }

    def __repr__(self):
        return f"<SheetColumn {self.view_id}:{self.key}>"


# ── Cell value (EAV) ─────────────────────────────────────────────────────────

class CellValue(db.Model):
    """One cell: university U has text value V for column key K within view W."""

    __tablename__ = "values"
    __table_args__ = (
        db.UniqueConstraint(
            "university_id", "column_key", "view_id", name="uq_values_cell",
        ),
        db.Index("idx_values_view", "view_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    university_id = db.Column(
        db.Integer,
        db.ForeignKey("universities.id", ondelete="CASCADE"),
        nullable=False,
    )
    column_key = db.Column(db.String(100), nullable=False)
    view_id = db.Column(
        db.Integer,
        db.ForeignKey("views.id", ondelete="CASCADE"),
        nullable=False,
    )
    value = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def to_dict(self):
        return {
            "id": self.id,
            "university_id": self.university_id,
            "column_key": self.column_key,
            "view_id": self.view_id,
            "value": self.value,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<CellValue u={self.university_id} {self.column_key!r} v={self.view_id}>"


# ── History ledger ───────────────────────────────────────────────────────────

class ValueHistory(db.Model):
    """
    Append-only trail of value changes with provenance.

    No uniqueness: many rows per cell. Nothing prunes this table.
    """

    __tablename__ = "values_history"
    __table_args__ = (
        db.Index("idx_history_university", "university_id", "timestamp"),
    )

    id = db.Column(db.Integer, primary_key=True)
    university_id = db.Column(
        db.Integer,
        db.ForeignKey("universities.id", ondelete="CASCADE"),
        nullable=False,
    )
    column_key = db.Column(db.String(100), nullable=False)
    view_id = db.Column(
        db.Integer,
        db.ForeignKey("views.id", ondelete="CASCADE"),
        nullable=True,
    )
    old_value = db.Column(db.Text)
    new_value = db.Column(db.Text)
    source = db.Column(db.Text, comment="URL or source name, e.g. 'AI'")
    confidence = db.Column(db.Float, comment="0.0 – 1.0")
    notes = db.Column(db.Text)
    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "university_id": self.university_id,
            "column_key": self.column_key,
            "view_id": self.view_id,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "source": self.source,
            "confidence": self.confidence,
            "notes": self.notes,
            "timestamp": _iso(self.timestamp),
        }


# ── Cell format sidecar ──────────────────────────────────────────────────────

# snake_case column name → camelCase wire name
FORMAT_ATTRIBUTES = {
    "background_color": "backgroundColor",
    "text_color": "textColor",
    "bold": "bold",
    "italic": "italic",
    "underline": "underline",
    "font_size": "fontSize",
    "text_align": "textAlign",
    "border_color": "borderColor",
    "border_style": "borderStyle",
    "border_width": "borderWidth",
}

BOOLEAN_FORMAT_ATTRIBUTES = frozenset({"bold", "italic", "underline"})


class CellFormat(db.Model):
    """Presentation attributes for a cell, set and cleared independently of its value."""

    __tablename__ = "cell_formats"
    __table_args__ = (
        db.UniqueConstraint(
            "university_id", "column_key", "view_id", name="uq_cell_formats_cell",
        ),
        db.Index("idx_cell_formats_view", "view_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    university_id = db.Column(
        db.Integer,
        db.ForeignKey("universities.id", ondelete="CASCADE"),
        nullable=False,
    )
    column_key = db.Column(db.String(100), nullable=False)
    view_id = db.Column(
        db.Integer,
        db.ForeignKey("views.id", ondelete="CASCADE"),
        nullable=False,
    )
    background_color = db.Column(db.String(50))
    text_color = db.Column(db.String(50))
    bold = db.Column(db.Boolean, default=False)
    italic = db.Column(db.Boolean, default=False)
    underline = db.Column(db.Boolean, default=False)
    font_size = db.Column(db.String(20))
    text_align = db.Column(db.String(20))
    border_color = db.Column(db.String(50))
    border_style = db.Column(db.String(20))
    border_width = db.Column(db.String(20))
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def attributes(self):
        """Return the camelCase attribute map used by the grid renderer."""
        out = {}
        for attr, wire in FORMAT_ATTRIBUTES.items():
            val = getattr(self, attr)
            out[wire] = bool(val) if attr in BOOLEAN_FORMAT_ATTRIBUTES else val
        return out

    def is_empty(self):
        return not any(getattr(self, attr) for attr in FORMAT_ATTRIBUTES)

    def to_dict(self):
        return {
            "id": self.id,
            "university_id": self.university_id,
            "column_key": self.column_key,
            "view_id": self.view_id,
            **self.attributes(),
            "updated_at": _iso(self.updated_at),
        }
