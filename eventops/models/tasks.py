# eventops/models/tasks.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text

from eventops.db import Base
from eventops.models.types import JSONEncodedList


class Task(Base):
    """
    Planning task.

    `departments` holds department short names (not ids), stored as a JSON
    array in a text column.
    """
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String(1000), nullable=False)
    status = Column(String(20), nullable=False, default="not_started")   # not_started, in_progress, completed, blocked
    priority = Column(String(10), nullable=False, default="medium")   # low, medium, high
    due_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    departments = Column(JSONEncodedList, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def department_names(self):
        # Only strings survive; anything else in the stored array is noise
        return [d for d in (self.departments or []) if isinstance(d, str)]

    def __repr__(self) -> str:
        return f"<Task {self.id} {self.status}>"
