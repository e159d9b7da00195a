# models/task.py
from __future__ import annotations

import enum

from db import db
from sqlalchemy.sql import func

TITLE_MAX_LEN = 200


class TaskStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, raw: str | None) -> "TaskStatus | None":
        try:
            return cls(raw)
        except ValueError:
            return None


class Task(db.Model):
    __tablename__ = "tasks"

    id             = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title          = db.Column(db.String(TITLE_MAX_LEN), nullable=False)
    description    = db.Column(db.Text, nullable=False)
    assigned_to_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    assigned_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    status         = db.Column(db.String(16), nullable=False, default=TaskStatus.PENDING.value)
    created_at     = db.Column(db.DateTime, server_default=func.now(), nullable=False)

    assignee = db.relationship("User", back_populates="assigned_tasks", foreign_keys=[assigned_to_id])
    assigner = db.relationship("User", back_populates="created_tasks", foreign_keys=[assigned_by_id])

    def to_dict(self, *, include_assignee: bool = True) -> dict:
        out = {
            "_id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "assignedBy": self.assigner.to_ref_dict() if self.assigner else None,
        }
        if include_assignee:
            out["assignedTo"] = self.assignee.to_ref_dict() if self.assignee else None
        return out
