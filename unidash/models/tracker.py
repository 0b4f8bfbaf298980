"""Tracker entities: applications, tasks, grades and documents.

Independent CRUD records that live beside the spreadsheet. Only
Application references a University, and losing that university merely
unlinks the application.
"""

import json
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)

from unidash.models import db


def _utcnow():
    return datetime.now(timezone.utc)


APPLICATION_STATUSES = (
    "researching", "preparing", "submitted", "interview",
    "accepted", "rejected", "waitlisted", "withdrawn",
)
TASK_PRIORITIES = ("low", "medium", "high")


class Application(db.Model):
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True)
    name = Column(String(300))
    type = Column(String(50), nullable=False)  # bachelor | master | scholarship | ...
    university_id = Column(
        Integer, ForeignKey("universities.id", ondelete="SET NULL"), nullable=True
    )
    status = Column(String(30), nullable=False, default="researching")
    deadline = Column(String(10))  # ISO date, YYYY-MM-DD
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "university_id": self.university_id,
            "status": self.status,
            "deadline": self.deadline,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Task(db.Model):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True)
    title = Column(String(500), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    due_date = Column(String(10))
    priority = Column(String(10), nullable=False, default="medium")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "completed": bool(self.completed),
            "due_date": self.due_date,
            "priority": self.priority,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Grade(db.Model):
    __tablename__ = "grades"

    id = Column(String(36), primary_key=True)
    course = Column(String(300), nullable=False)
    grade = Column(String(20), nullable=False)
    credits = Column(Float, nullable=False)
    semester = Column(String(50), nullable=False)
    school = Column(String(300), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "course": self.course,
            "grade": self.grade,
            "credits": self.credits,
            "semester": self.semester,
            "school": self.school,
        }


class Document(db.Model):
    """Opaque blob plus metadata; the backend never interprets file_data."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True)
    name = Column(String(500), nullable=False)
    type = Column(String(100))
    size = Column(Integer)
    file_data = Column(Text)
    tags = Column(Text)  # JSON list
    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self, include_data=False):
        try:
            tags = json.loads(self.tags) if self.tags else []
        except ValueError:
            tags = []
        out = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "tags": tags,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
        if include_data:
            out["file_data"] = self.file_data
        return out
