# eventops/routers/meetings.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session, selectinload

from eventops.db import get_db
from eventops.models.departments import Department
from eventops.models.meetings import ActionItem, Meeting
from eventops.schemas import MeetingIn, meeting_out

router = APIRouter(prefix="/meetings", tags=["Meetings"])
log = logging.getLogger("eventops.meetings")


def _with_items(q):
    return q.options(selectinload(Meeting.action_items).selectinload(ActionItem.departments))


def get_meeting_or_404(db: Session, meeting_id: int) -> Meeting:
    meeting = _with_items(db.query(Meeting)).filter(Meeting.id == meeting_id).first()
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


def resolve_departments(db: Session, department_ids) -> dict:
    """id -> Department for every id referenced; unknown ids are a 400."""
    wanted = set(department_ids)
    if not wanted:
        return {}
    found = {d.id: d for d in db.query(Department).filter(Department.id.in_(wanted)).all()}
    missing = sorted(wanted - set(found))
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown department ids: {', '.join(str(m) for m in missing)}",
        )
    return found


def sync_action_items(db: Session, meeting: Meeting, items) -> None:
    """
    Make the meeting's action items exactly `items`.

    Submitted items whose id already belongs to this meeting are updated in
    place and keep their id; the rest are inserted; anything not submitted is
    deleted.
    """
    departments = resolve_departments(
        db, [dept_id for item in items for dept_id in item.department_ids]
    )
    existing = {i.id: i for i in meeting.action_items}

    kept = []
    for position, item in enumerate(items):
        action = existing.pop(item.id, None) if item.id is not None else None
        if action is None:
            action = ActionItem()
        action.description = item.description.strip()
        action.due_date = item.due_date
        action.position = position
        action.departments = [departments[dept_id] for dept_id in dict.fromkeys(item.department_ids)]
        kept.append(action)

    # delete-orphan cascade removes whatever is left in `existing`
    meeting.action_items = kept


@router.get("")
def list_meetings(db: Session = Depends(get_db)):
    meetings = _with_items(db.query(Meeting)).order_by(Meeting.date.desc(), Meeting.id.desc()).all()
    return [meeting_out(m) for m in meetings]


@router.get("/{meeting_id}")
def get_meeting(meeting_id: int, db: Session = Depends(get_db)):
    return meeting_out(get_meeting_or_404(db, meeting_id))


@router.post("", status_code=201)
def create_meeting(payload: MeetingIn, db: Session = Depends(get_db)):
    meeting = Meeting(
        title=payload.title.strip(),
        date=payload.date,
        notes=payload.notes,
    )
    # ids sent on create mean nothing yet
    items = [item.model_copy(update={"id": None}) for item in payload.action_items]
    sync_action_items(db, meeting, items)

    db.add(meeting)
    db.commit()
    log.info("Meeting %s created with %d action items", meeting.id, len(items))
    return meeting_out(get_meeting_or_404(db, meeting.id))


@router.put("/{meeting_id}")
def update_meeting(
    meeting_id: int,
    payload: MeetingIn,
    db: Session = Depends(get_db),
):
    meeting = get_meeting_or_404(db, meeting_id)

    meeting.title = payload.title.strip()
    meeting.date = payload.date
    meeting.notes = payload.notes
    sync_action_items(db, meeting, payload.action_items)

    # one commit: the meeting never ends up with a half-applied item list
    db.commit()
    db.expire_all()
    return meeting_out(get_meeting_or_404(db, meeting_id))


@router.delete("/{meeting_id}", status_code=204)
def delete_meeting(meeting_id: int, db: Session = Depends(get_db)):
    meeting = get_meeting_or_404(db, meeting_id)
    db.delete(meeting)
    db.commit()
    log.info("Meeting %s deleted", meeting_id)
    return Response(status_code=204)
