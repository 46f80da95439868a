"""Meeting API routes."""
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
import structlog

from spacos.api.contacts import get_contact_or_404
from spacos.db.base import get_db
from spacos.models.meeting import Meeting, MeetingAttendee
from spacos.schemas.meeting import (
    AttendeeIn, AttendeeResponse, MeetingCreate, MeetingUpdate, MeetingResponse,
    AttendeeStatusRequest,
)

router = APIRouter(prefix="/meetings", tags=["meetings"])
logger = structlog.get_logger(__name__)


def get_meeting_or_404(db: Session, meeting_id: int) -> Meeting:
    meeting = db.query(Meeting).filter(Meeting.id == meeting_id).first()
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


def get_attendee_or_404(meeting: Meeting, attendee_id: int) -> MeetingAttendee:
    for attendee in meeting.attendees:
        if attendee.id == attendee_id:
            return attendee
    raise HTTPException(status_code=404, detail="Attendee not found")


def _check_times(start_time: datetime, end_time: datetime):
    if end_time <= start_time:
        raise HTTPException(status_code=400, detail="Meeting end time must be after start time")


def _same_attendee(attendee: MeetingAttendee, candidate: AttendeeIn) -> bool:
    if candidate.contact_id is not None and attendee.contact_id == candidate.contact_id:
        return True
    return bool(candidate.email and attendee.email and attendee.email.lower() == candidate.email.lower())


def _add_attendee(db: Session, meeting: Meeting, request: AttendeeIn) -> MeetingAttendee:
    if any(_same_attendee(a, request) for a in meeting.attendees):
        raise HTTPException(status_code=409, detail="Attendee already added to this meeting")

    name, email = request.name, request.email
    if request.contact_id is not None:
        contact = get_contact_or_404(db, request.contact_id)
        name = name or contact.full_name
        email = email or contact.email

    attendee = MeetingAttendee(contact_id=request.contact_id, email=email, name=name, status=request.status)
    meeting.attendees.append(attendee)
    return attendee


@router.get("", response_model=list[MeetingResponse])
def list_meetings(
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    contact_id: Optional[int] = None,
    spac_id: Optional[int] = None,
    target_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List meetings by start time."""
    q = db.query(Meeting)
    if start_from:
        q = q.filter(Meeting.start_time >= start_from)
    if start_to:
        q = q.filter(Meeting.start_time <= start_to)
    if contact_id is not None:
        q = q.filter(Meeting.attendees.any(MeetingAttendee.contact_id == contact_id))
    if spac_id is not None:
        q = q.filter(Meeting.spac_id == spac_id)
    if target_id is not None:
        q = q.filter(Meeting.target_id == target_id)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(Meeting.title.ilike(term), Meeting.description.ilike(term)))
    return q.order_by(Meeting.start_time.asc()).all()


@router.get("/upcoming", response_model=list[MeetingResponse])
def get_upcoming_meetings(days: int = Query(7, ge=1, le=90), db: Session = Depends(get_db)):
    now = datetime.utcnow()
    return db.query(Meeting).filter(
        Meeting.start_time >= now,
        Meeting.start_time <= now + timedelta(days=days),
    ).order_by(Meeting.start_time.asc()).all()


@router.get("/contact/{contact_id}", response_model=list[MeetingResponse])
def get_contact_meetings(contact_id: int, db: Session = Depends(get_db)):
    """Meetings a contact attends, most recent first."""
    contact = get_contact_or_404(db, contact_id)
    match = MeetingAttendee.contact_id == contact.id
    if contact.email:
        match = or_(match, func.lower(MeetingAttendee.email) == contact.email.lower())
    return db.query(Meeting).filter(
        Meeting.attendees.any(match)
    ).order_by(Meeting.start_time.desc()).all()


@router.get("/{meeting_id}", response_model=MeetingResponse)
def get_meeting(meeting_id: int, db: Session = Depends(get_db)):
    return get_meeting_or_404(db, meeting_id)


@router.post("", response_model=MeetingResponse, status_code=201)
def create_meeting(request: MeetingCreate, db: Session = Depends(get_db)):
    _check_times(request.start_time, request.end_time)

    meeting = Meeting(**request.model_dump(exclude={"attendees"}))
    db.add(meeting)
    for attendee in request.attendees:
        _add_attendee(db, meeting, attendee)
    db.commit()
    db.refresh(meeting)

    logger.info("meeting.created", meeting_id=meeting.id, attendees=len(meeting.attendees))
    return meeting


@router.patch("/{meeting_id}", response_model=MeetingResponse)
def update_meeting(meeting_id: int, request: MeetingUpdate, db: Session = Depends(get_db)):
    meeting = get_meeting_or_404(db, meeting_id)

    data = request.model_dump(exclude_unset=True)
    _check_times(data.get("start_time") or meeting.start_time, data.get("end_time") or meeting.end_time)
    for field, value in data.items():
        setattr(meeting, field, value)
    db.commit()
    db.refresh(meeting)
    return meeting


@router.delete("/{meeting_id}")
def delete_meeting(meeting_id: int, db: Session = Depends(get_db)):
    meeting = get_meeting_or_404(db, meeting_id)
    db.delete(meeting)
    db.commit()

    logger.info("meeting.deleted", meeting_id=meeting_id)
    return {"status": "deleted", "meeting_id": meeting_id}


@router.post("/{meeting_id}/attendees", response_model=AttendeeResponse, status_code=201)
def add_attendee(meeting_id: int, request: AttendeeIn, db: Session = Depends(get_db)):
    meeting = get_meeting_or_404(db, meeting_id)
    attendee = _add_attendee(db, meeting, request)
    db.commit()
    db.refresh(attendee)
    return attendee


@router.delete("/{meeting_id}/attendees/{attendee_id}")
def remove_attendee(meeting_id: int, attendee_id: int, db: Session = Depends(get_db)):
    meeting = get_meeting_or_404(db, meeting_id)
    attendee = get_attendee_or_404(meeting, attendee_id)
    meeting.attendees.remove(attendee)
    db.commit()
    return {"status": "removed", "attendee_id": attendee_id}


@router.post("/{meeting_id}/attendees/{attendee_id}/status", response_model=AttendeeResponse)
def update_attendee_status(
    meeting_id: int,
    attendee_id: int,
    request: AttendeeStatusRequest,
    db: Session = Depends(get_db),
):
    meeting = get_meeting_or_404(db, meeting_id)
    attendee = get_attendee_or_404(meeting, attendee_id)
    attendee.status = request.status
    db.commit()
    db.refresh(attendee)
    return attendee
