"""Recorded e-mail API routes."""
import re
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
import structlog

from spacos.api.contacts import get_contact_or_404
from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.contact import Contact
from spacos.models.email import Email, EmailDirection
from spacos.schemas.common import Page
from spacos.schemas.email import (
    EmailCreate, EmailResponse, EmailIdsRequest, LinkContactRequest, EmailStatistics,
)

router = APIRouter(prefix="/emails", tags=["emails"])
logger = structlog.get_logger(__name__)

SNIPPET_LENGTH = 200
WHITESPACE = re.compile(r"\s+")


def get_email_or_404(db: Session, email_id: int) -> Email:
    email = db.query(Email).filter(Email.id == email_id).first()
    if not email:
        raise HTTPException(status_code=404, detail="Email not found")
    return email


def make_snippet(body: Optional[str]) -> Optional[str]:
    if not body:
        return None
    text = WHITESPACE.sub(" ", body).strip()
    return text if len(text) <= SNIPPET_LENGTH else text[:SNIPPET_LENGTH - 3] + "..."


def _match_contact(db: Session, direction: EmailDirection, from_address: str, to_addresses: list[str]) -> Optional[Contact]:
    """The CRM contact on the other side of the message, if one exists."""
    candidates = [from_address] if direction == EmailDirection.INBOUND else to_addresses
    for address in candidates:
        contact = db.query(Contact).filter(
            func.lower(Contact.email) == address.strip().lower(),
            Contact.deleted_at.is_(None),
        ).first()
        if contact:
            return contact
    return None


@router.get("", response_model=Page[EmailResponse])
def list_emails(
    contact_id: Optional[int] = None,
    is_read: Optional[bool] = None,
    is_starred: Optional[bool] = None,
    direction: Optional[EmailDirection] = None,
    search: Optional[str] = None,
    sent_from: Optional[datetime] = None,
    sent_to: Optional[datetime] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List recorded e-mails, newest first.

    - **search**: Match subject, sender or snippet
    """
    q = db.query(Email)

    if contact_id is not None:
        q = q.filter(Email.contact_id == contact_id)
    if is_read is not None:
        q = q.filter(Email.is_read == is_read)
    if is_starred is not None:
        q = q.filter(Email.is_starred == is_starred)
    if direction:
        q = q.filter(Email.direction == direction)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Email.subject.ilike(term),
            Email.from_address.ilike(term),
            Email.snippet.ilike(term),
        ))
    if sent_from:
        q = q.filter(Email.sent_at >= sent_from)
    if sent_to:
        q = q.filter(Email.sent_at <= sent_to)

    return paginate(q.order_by(Email.sent_at.desc(), Email.id.desc()), pagination)


@router.get("/statistics", response_model=EmailStatistics)
def get_email_statistics(contact_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = db.query(Email)
    if contact_id is not None:
        q = q.filter(Email.contact_id == contact_id)

    week_ago = datetime.utcnow() - timedelta(days=7)
    return EmailStatistics(
        total=q.count(),
        unread=q.filter(Email.is_read == False).count(),
        starred=q.filter(Email.is_starred == True).count(),
        by_direction={d.value: q.filter(Email.direction == d).count() for d in EmailDirection},
        last_7_days=q.filter(Email.sent_at >= week_ago).count(),
    )


@router.get("/thread/{thread_id}", response_model=list[EmailResponse])
def get_thread(thread_id: str, db: Session = Depends(get_db)):
    """All messages of a thread, oldest first."""
    emails = db.query(Email).filter(Email.thread_id == thread_id).order_by(Email.sent_at.asc(), Email.id).all()
    if not emails:
        raise HTTPException(status_code=404, detail="Thread not found")
    return emails


@router.post("/read")
def bulk_mark_read(request: EmailIdsRequest, db: Session = Depends(get_db)):
    updated = db.query(Email).filter(
        Email.id.in_(request.ids),
        Email.is_read == False,
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return {"updated": updated}


@router.get("/{email_id}", response_model=EmailResponse)
def get_email(email_id: int, db: Session = Depends(get_db)):
    return get_email_or_404(db, email_id)


@router.post("", response_model=EmailResponse, status_code=201)
def record_email(request: EmailCreate, db: Session = Depends(get_db)):
    """
    Record an e-mail.

    Without a contact_id the message is linked to the contact whose
    address matches the other party, when there is one.
    """
    if request.contact_id is not None:
        contact = get_contact_or_404(db, request.contact_id)
    else:
        contact = _match_contact(db, request.direction, request.from_address, request.to_addresses)

    data = request.model_dump(exclude={"contact_id"})
    data["sent_at"] = data["sent_at"] or datetime.utcnow()
    email = Email(
        contact_id=contact.id if contact else None,
        snippet=make_snippet(request.body),
        **data,
    )
    db.add(email)
    if contact and (contact.last_interaction_at is None or contact.last_interaction_at < email.sent_at):
        contact.last_interaction_at = email.sent_at
    db.commit()
    db.refresh(email)

    logger.info("email.recorded", email_id=email.id, contact_id=email.contact_id, direction=email.direction.value)
    return email


@router.post("/{email_id}/read", response_model=EmailResponse)
def mark_read(email_id: int, is_read: bool = True, db: Session = Depends(get_db)):
    email = get_email_or_404(db, email_id)
    email.is_read = is_read
    db.commit()
    db.refresh(email)
    return email


@router.post("/{email_id}/star", response_model=EmailResponse)
def toggle_star(email_id: int, db: Session = Depends(get_db)):
    email = get_email_or_404(db, email_id)
    email.is_starred = not email.is_starred
    db.commit()
    db.refresh(email)
    return email


@router.post("/{email_id}/contact", response_model=EmailResponse)
def link_contact(email_id: int, request: LinkContactRequest, db: Session = Depends(get_db)):
    """Link the e-mail to a contact, or unlink it when contact_id is null."""
    email = get_email_or_404(db, email_id)
    if request.contact_id is not None:
        get_contact_or_404(db, request.contact_id)
    email.contact_id = request.contact_id
    db.commit()
    db.refresh(email)
    return email
