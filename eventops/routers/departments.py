# eventops/routers/departments.py
import logging

from fastapi import (
    APIRouter,
    Depends,
    Form,
    HTTPException,
    Response,
    UploadFile,
    File as FastAPIFile,
)
from sqlalchemy.orm import Session, selectinload

from eventops.db import get_db
from eventops.models.departments import Department, Document
from eventops.schemas import DepartmentIn, department_out, document_out
from eventops.storage import StorageError, get_storage
from eventops.views import MAX_UPLOAD_SIZE, validate_upload

router = APIRouter(prefix="/departments", tags=["Departments & Documents"])
log = logging.getLogger("eventops.departments")


def get_department_or_404(db: Session, department_id: int) -> Department:
    dept = db.get(Department, department_id)
    if not dept:
        raise HTTPException(status_code=404, detail="Department not found")
    return dept


# ================== Departments ==================

@router.get("")
def list_departments(include_documents: bool = True, db: Session = Depends(get_db)):
    q = db.query(Department)
    if include_documents:
        q = q.options(selectinload(Department.documents))
    departments = q.order_by(Department.name.asc(), Department.id.asc()).all()
    return [department_out(d, include_documents=include_documents) for d in departments]


@router.get("/{department_id}")
def get_department(department_id: int, db: Session = Depends(get_db)):
    return department_out(get_department_or_404(db, department_id))


@router.post("", status_code=201)
def create_department(payload: DepartmentIn, db: Session = Depends(get_db)):
    dept = Department(
        name=payload.name.strip(),
        full_name=payload.full_name.strip(),
        overseers=[o.model_dump() for o in payload.overseers],
    )
    db.add(dept)
    db.commit()
    db.refresh(dept)
    log.info("Department %s (%s) created", dept.id, dept.name)
    return department_out(dept)


@router.put("/{department_id}")
def update_department(
    department_id: int,
    payload: DepartmentIn,
    db: Session = Depends(get_db),
):
    dept = get_department_or_404(db, department_id)

    dept.name = payload.name.strip()
    dept.full_name = payload.full_name.strip()
    dept.overseers = [o.model_dump() for o in payload.overseers]
    db.commit()
    db.refresh(dept)
    return department_out(dept)


@router.delete("/{department_id}", status_code=204)
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    dept = get_department_or_404(db, department_id)
    stored_refs = [doc.file_name for doc in dept.documents]

    # documents and action-item links go with the department
    db.delete(dept)
    db.commit()

    for ref in stored_refs:
        storage.delete(ref)

    log.info("Department %s deleted (%d documents)", department_id, len(stored_refs))
    return Response(status_code=204)


# ================== Documents ==================

def store_document(db: Session, storage, department_id: int, name: str, file) -> Document:
    """
    Validate and persist one uploaded file. Shared by the JSON endpoint and
    the departments page form. Blocking: only call it from sync handlers.
    """
    # existence check happens before anything touches storage
    get_department_or_404(db, department_id)

    name = (name or "").strip()
    if not name or file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Name and file are required")

    # one byte past the limit is enough to know the file is too big
    content = file.file.read(MAX_UPLOAD_SIZE + 1)
    content_type = file.content_type or "application/octet-stream"

    error = validate_upload(len(content), content_type)
    if error:
        raise HTTPException(status_code=400, detail=error)

    try:
        stored_ref = storage.save(department_id, file.filename, content, content_type)
    except StorageError:
        log.exception("Upload for department %s failed", department_id)
        raise HTTPException(status_code=500, detail="Failed to upload document")

    doc = Document(
        name=name,
        file_name=stored_ref,
        content_type=content_type,
        size=len(content),
        department_id=department_id,
    )
    db.add(doc)
    db.commit()
    db.refresh(doc)
    log.info("Document %s uploaded to department %s", doc.id, department_id)
    return doc


@router.post("/{department_id}/documents", status_code=201)
def upload_document(
    department_id: int,
    name: str = Form(""),
    file: UploadFile = FastAPIFile(None),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    return document_out(store_document(db, storage, department_id, name, file))


@router.get("/{department_id}/documents")
def list_documents(department_id: int, db: Session = Depends(get_db)):
    docs = (
        db.query(Document)
        .filter(Document.department_id == department_id)
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
        .all()
    )
    return [document_out(d) for d in docs]


@router.get("/{department_id}/documents/{document_id}")
def fetch_document(
    department_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
):
    doc = db.get(Document, document_id)
    if not doc or doc.department_id != department_id:
        raise HTTPException(status_code=404, detail="Document not found")
    return storage.response(doc)
