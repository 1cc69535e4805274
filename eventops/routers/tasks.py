# eventops/routers/tasks.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from eventops.db import get_db
from eventops.models.tasks import Task
from eventops.schemas import TaskCreate, TaskPatch, TaskUpdate, task_out
from eventops.security import require_admin

router = APIRouter(prefix="/tasks", tags=["Tasks"])
log = logging.getLogger("eventops.tasks")


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("")
def list_tasks(db: Session = Depends(get_db)):
    tasks = db.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).all()
    return [task_out(t) for t in tasks]


@router.get("/{task_id}")
def get_task(task_id: int, db: Session = Depends(get_db)):
    return task_out(get_task_or_404(db, task_id))


@router.post("", status_code=201)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    role=Depends(require_admin),
):
    task = Task(
        description=payload.description.strip(),
        departments=payload.departments,
        status=payload.status or "not_started",
        priority=payload.priority,
        due_date=payload.due_date,
        notes=payload.notes,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    log.info("Task %s created", task.id)
    return task_out(task)


@router.patch("/{task_id}")
def patch_task(
    task_id: int,
    payload: TaskPatch,
    db: Session = Depends(get_db),
    role=Depends(require_admin),
):
    task = get_task_or_404(db, task_id)

    # only the fields present in the request body are touched
    changes = payload.model_dump(exclude_unset=True)
    for field in ("description", "status", "priority", "departments"):
        if changes.get(field) is not None:
            setattr(task, field, changes[field])
    if "due_date" in changes:
        task.due_date = changes["due_date"]
    if "notes" in changes:
        task.notes = changes["notes"] or None

    db.commit()
    db.refresh(task)
    return task_out(task)


@router.put("/{task_id}")
def replace_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    role=Depends(require_admin),
):
    task = get_task_or_404(db, task_id)

    task.description = payload.description.strip()
    task.status = payload.status
    task.priority = payload.priority
    task.due_date = payload.due_date
    task.notes = payload.notes
    if payload.departments is not None:
        task.departments = payload.departments

    db.commit()
    db.refresh(task)
    return task_out(task)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    role=Depends(require_admin),
):
    task = get_task_or_404(db, task_id)
    db.delete(task)
    db.commit()
    log.info("Task %s deleted", task_id)
    return Response(status_code=204)
