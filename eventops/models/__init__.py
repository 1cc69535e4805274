# eventops/models/__init__.py

# Tasks
from .tasks import Task

# Departments & their uploaded documents
from .departments import Department, Document

# Meetings & action items
from .meetings import Meeting, ActionItem, action_item_departments


__all__ = [
    "Task",
    "Department",
    "Document",
    "Meeting",
    "ActionItem",
    "action_item_departments",
]
