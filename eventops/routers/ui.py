# eventops/routers/ui.py
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from eventops.db import get_db
from eventops.models.departments import Department
from eventops.models.meetings import ActionItem, Meeting
from eventops.models.tasks import Task
from eventops.routers.departments import store_document
from eventops.schemas import department_out, meeting_out, task_out
from eventops.security import ROLE_ADMIN, get_role
from eventops.storage import get_storage
from eventops.templating import templates
from eventops import views

router = APIRouter(prefix="/ui", tags=["UI"], include_in_schema=False)
log = logging.getLogger("eventops.ui")

TASK_STATUSES = [
    ("not_started", "Not started"),
    ("in_progress", "In progress"),
    ("completed", "Completed"),
    ("blocked", "Blocked"),
]


class PageData:
    """
    Loads collections for a page independently. A failing load is logged,
    turned into a notice and leaves that collection empty; the page still
    renders with whatever else loaded.
    """

    def __init__(self, db: Session):
        self.db = db
        self.notices = []

    def _load(self, label, loader):
        try:
            return loader()
        except SQLAlchemyError:
            log.exception("Loading %s failed", label)
            self.db.rollback()
            self.notices.append(f"Could not load {label}.")
            return []

    def tasks(self):
        return self._load(
            "tasks",
            lambda: [
                task_out(t)
                for t in self.db.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).all()
            ],
        )

    def departments(self):
        return self._load(
            "departments",
            lambda: [
                department_out(d)
                for d in self.db.query(Department)
                .options(selectinload(Department.documents))
                .order_by(Department.name.asc())
                .all()
            ],
        )

    def meetings(self):
        return self._load(
            "meetings",
            lambda: [
                meeting_out(m)
                for m in self.db.query(Meeting)
                .options(selectinload(Meeting.action_items).selectinload(ActionItem.departments))
                .order_by(Meeting.date.desc())
                .all()
            ],
        )


def _render(request: Request, template: str, context: dict):
    role = get_role(request)
    base = {
        "role": role,
        "is_admin": role == ROLE_ADMIN,
    }
    base.update(context)
    return templates.TemplateResponse(request, template, base)


def _redirect_home():
    return RedirectResponse(url="/", status_code=303)


@router.get("/dashboard", name="dashboard_ui")
def dashboard_ui(request: Request, db: Session = Depends(get_db)):
    if not get_role(request):
        return _redirect_home()

    data = PageData(db)
    tasks = data.tasks()
    return _render(
        request,
        "dashboard.html",
        {"stats": views.count_by_status(tasks), "notices": data.notices},
    )


@router.get("/tasks", name="tasks_ui")
def tasks_ui(
    request: Request,
    department: str = "all",
    status: str = "all",
    month: str = "all",
    db: Session = Depends(get_db),
):
    if not get_role(request):
        return _redirect_home()

    data = PageData(db)
    tasks = data.tasks()
    departments = data.departments()

    return _render(
        request,
        "tasks.html",
        {
            "tasks": views.filter_tasks(tasks, department, status, month),
            "departments": departments,
            "statuses": TASK_STATUSES,
            "months": views.month_options(tasks),
            "filters": {"department": department, "status": status, "month": month},
            "notices": data.notices,
        },
    )


@router.get("/timeline", name="timeline_ui")
def timeline_ui(request: Request, department: str = "all", db: Session = Depends(get_db)):
    if not get_role(request):
        return _redirect_home()

    data = PageData(db)
    tasks = views.filter_tasks(data.tasks(), department=department)
    departments = data.departments()

    return _render(
        request,
        "timeline.html",
        {
            "months": views.timeline_months(),
            "bars": views.build_timeline(tasks),
            "today": views.today_marker(),
            "departments": departments,
            "selected_department": department,
            "notices": data.notices,
        },
    )


@router.get("/departments", name="departments_ui")
def departments_ui(request: Request, q: str = "", error: str = "", db: Session = Depends(get_db)):
    if not get_role(request):
        return _redirect_home()

    data = PageData(db)
    departments = data.departments()
    if error:
        data.notices.append(error)

    return _render(
        request,
        "departments.html",
        {
            "departments": views.search_departments(departments, q),
            "query": q,
            "max_upload_mb": views.MAX_UPLOAD_SIZE // (1024 * 1024),
            "accepted_types": ",".join(views.ACCEPTED_CONTENT_TYPES),
            "notices": data.notices,
        },
    )


@router.post("/departments/{department_id}/documents", name="departments_ui_upload")
def departments_ui_upload(
    request: Request,
    department_id: int,
    name: str = Form(""),
    file: UploadFile = File(None),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    role = get_role(request)
    if not role:
        return _redirect_home()

    target = "/ui/departments"
    if role != ROLE_ADMIN:
        return RedirectResponse(
            url=f"{target}?{urlencode({'error': 'Guests cannot upload documents'})}",
            status_code=303,
        )

    try:
        store_document(db, storage, department_id, name, file)
    except HTTPException as exc:
        return RedirectResponse(url=f"{target}?{urlencode({'error': exc.detail})}", status_code=303)
    return RedirectResponse(url=target, status_code=303)


@router.get("/meetings", name="meetings_ui")
def meetings_ui(request: Request, db: Session = Depends(get_db)):
    if not get_role(request):
        return _redirect_home()

    data = PageData(db)
    return _render(
        request,
        "meetings.html",
        {"meetings": data.meetings(), "notices": data.notices},
    )
