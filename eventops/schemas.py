# eventops/schemas.py
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

TaskStatus = Literal["not_started", "in_progress", "completed", "blocked"]
TaskPriority = Literal["low", "medium", "high"]


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Columns are naive UTC; "2025-03-01T10:00:00Z" and friends get normalised
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ================== Tasks ==================

class TaskCreate(CamelModel):
    description: str = Field(..., min_length=1)
    departments: List[str] = []
    status: Optional[TaskStatus] = None
    priority: TaskPriority = "medium"
    due_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None


class TaskUpdate(CamelModel):
    """Full replacement. `departments` is only replaced when sent."""
    description: str = Field(..., min_length=1)
    status: TaskStatus = "not_started"
    priority: TaskPriority = "medium"
    due_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None
    departments: Optional[List[str]] = None


class TaskPatch(CamelModel):
    description: Optional[str] = Field(None, min_length=1)
    departments: Optional[List[str]] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None


# ================== Departments ==================

class OverseerIn(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = ""


class DepartmentIn(CamelModel):
    name: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    overseers: List[OverseerIn] = Field(None, validate_default=True)

    @field_validator("overseers", mode="before")
    @classmethod
    def overseers_must_be_array(cls, value):
        if not isinstance(value, list):
            raise ValueError("Overseers must be an array")
        return value


# ================== Meetings ==================

class ActionItemIn(CamelModel):
    id: Optional[int] = None
    description: str = Field(..., min_length=1)
    due_date: Optional[UtcDatetime] = None
    department_ids: List[int] = []


class MeetingIn(CamelModel):
    title: str = Field(..., min_length=1)
    date: UtcDatetime
    notes: Optional[str] = None
    action_items: List[ActionItemIn] = []


# ================== Auth ==================

class LoginIn(BaseModel):
    password: str


# ================== Serializers (ORM -> JSON) ==================

def task_out(task) -> dict:
    return {
        "id": task.id,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "dueDate": task.due_date,
        "notes": task.notes,
        "departments": task.department_names,
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
    }


def overseer_out(raw: dict) -> dict:
    return {
        "name": str(raw.get("name") or ""),
        "email": str(raw.get("email") or ""),
        "phone": str(raw.get("phone") or ""),
    }


def document_out(doc) -> dict:
    return {
        "id": doc.id,
        "name": doc.name,
        "fileName": doc.file_name,
        "contentType": doc.content_type,
        "size": doc.size,
        "departmentId": doc.department_id,
        "uploadedAt": doc.uploaded_at,
    }


def department_out(dept, include_documents: bool = True) -> dict:
    data = {
        "id": dept.id,
        "name": dept.name,
        "fullName": dept.full_name,
        "overseers": [overseer_out(o) for o in dept.overseer_list],
        "createdAt": dept.created_at,
        "updatedAt": dept.updated_at,
    }
    if include_documents:
        data["documents"] = [document_out(d) for d in dept.documents]
    return data


def action_item_out(item) -> dict:
    return {
        "id": item.id,
        "meetingId": item.meeting_id,
        "description": item.description,
        "dueDate": item.due_date,
        "departmentIds": [d.id for d in item.departments],
        "departments": [department_out(d, include_documents=False) for d in item.departments],
    }


def meeting_out(meeting) -> dict:
    return {
        "id": meeting.id,
        "title": meeting.title,
        "date": meeting.date,
        "notes": meeting.notes,
        "actionItems": [action_item_out(i) for i in meeting.action_items],
        "createdAt": meeting.created_at,
        "updatedAt": meeting.updated_at,
    }
