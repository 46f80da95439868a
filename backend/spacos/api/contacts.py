"""CRM contact API routes."""
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, and_, func
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.contact import Contact, ContactType, ContactStatus
from spacos.models.target import Target, TargetContact
from spacos.schemas.common import Page
from spacos.schemas.contact import (
    ContactCreate, ContactUpdate, ContactResponse, ScoreRequest, ContactStatusRequest,
    LinkTargetRequest, BulkDeleteRequest, ContactStatistics,
)
from spacos.schemas.target import TargetContactResponse

router = APIRouter(prefix="/contacts", tags=["contacts"])
logger = structlog.get_logger(__name__)

STALE_AFTER_DAYS = 30


def get_contact_or_404(db: Session, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id, Contact.deleted_at.is_(None)).first()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


def _ensure_email_free(db: Session, email: Optional[str], exclude_id: Optional[int] = None):
    if not email:
        return
    q = db.query(Contact).filter(func.lower(Contact.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(Contact.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="A contact with this email already exists")


@router.get("", response_model=Page[ContactResponse])
def list_contacts(
    status: Optional[list[ContactStatus]] = Query(None),
    type: Optional[list[ContactType]] = Query(None),
    company_id: Optional[int] = None,
    search: Optional[str] = None,
    is_starred: Optional[bool] = None,
    score_min: Optional[int] = Query(None, ge=0, le=100),
    score_max: Optional[int] = Query(None, ge=0, le=100),
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List contacts.

    - **search**: Match first/last name, email or title
    - **score_min** / **score_max**: Relationship score range
    """
    q = db.query(Contact).filter(Contact.deleted_at.is_(None))

    if status:
        q = q.filter(Contact.status.in_(status))
    if type:
        q = q.filter(Contact.type.in_(type))
    if company_id is not None:
        q = q.filter(Contact.company_id == company_id)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Contact.first_name.ilike(term),
            Contact.last_name.ilike(term),
            Contact.email.ilike(term),
            Contact.title.ilike(term),
        ))
    if is_starred is not None:
        q = q.filter(Contact.is_starred == is_starred)
    if score_min is not None:
        q = q.filter(Contact.relationship_score >= score_min)
    if score_max is not None:
        q = q.filter(Contact.relationship_score <= score_max)

    q = q.order_by(Contact.last_name.asc(), Contact.first_name.asc(), Contact.id.asc())
    return paginate(q, pagination)


@router.get("/statistics", response_model=ContactStatistics)
def get_contact_statistics(db: Session = Depends(get_db)):
    contacts = db.query(Contact).filter(Contact.deleted_at.is_(None)).all()

    by_status = {s.value: 0 for s in ContactStatus}
    by_type = {t.value: 0 for t in ContactType}
    for c in contacts:
        by_status[c.status.value] += 1
        by_type[c.type.value] += 1

    scores = [c.relationship_score for c in contacts if c.relationship_score is not None]
    return ContactStatistics(
        total=len(contacts),
        by_status=by_status,
        by_type=by_type,
        starred=sum(1 for c in contacts if c.is_starred),
        average_relationship_score=sum(scores) / len(scores) if scores else None,
    )


@router.get("/follow-up", response_model=list[ContactResponse])
def get_contacts_needing_follow_up(
    days: int = Query(7, ge=0, le=90),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Contacts with a follow-up due within days, or no interaction in 30 days."""
    now = datetime.utcnow()
    stale_before = now - timedelta(days=STALE_AFTER_DAYS)
    return db.query(Contact).filter(
        Contact.deleted_at.is_(None),
        Contact.status.in_([ContactStatus.ACTIVE, ContactStatus.PROSPECT, ContactStatus.LEAD]),
        or_(
            and_(Contact.next_follow_up_at.isnot(None), Contact.next_follow_up_at <= now + timedelta(days=days)),
            Contact.last_interaction_at.is_(None),
            Contact.last_interaction_at < stale_before,
        ),
    ).order_by(Contact.next_follow_up_at.asc().nullslast(), Contact.id.asc()).limit(limit).all()


@router.post("/bulk-delete")
def bulk_delete_contacts(request: BulkDeleteRequest, db: Session = Depends(get_db)):
    """Soft delete several contacts at once."""
    deleted = db.query(Contact).filter(
        Contact.id.in_(request.ids),
        Contact.deleted_at.is_(None),
    ).update({Contact.deleted_at: datetime.utcnow()}, synchronize_session=False)
    db.commit()

    logger.info("contacts.bulk_deleted", requested=len(request.ids), deleted=deleted)
    return {"deleted": deleted}


@router.get("/{contact_id}", response_model=ContactResponse)
def get_contact(contact_id: int, db: Session = Depends(get_db)):
    return get_contact_or_404(db, contact_id)


@router.post("", response_model=ContactResponse, status_code=201)
def create_contact(request: ContactCreate, db: Session = Depends(get_db)):
    _ensure_email_free(db, request.email)

    contact = Contact(**request.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)

    logger.info("contact.created", contact_id=contact.id)
    return contact


@router.patch("/{contact_id}", response_model=ContactResponse)
def update_contact(contact_id: int, request: ContactUpdate, db: Session = Depends(get_db)):
    contact = get_contact_or_404(db, contact_id)

    data = request.model_dump(exclude_unset=True)
    if data.get("email") and data["email"] != contact.email:
        _ensure_email_free(db, data["email"], exclude_id=contact.id)

    for field, value in data.items():
        setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/{contact_id}")
def delete_contact(contact_id: int, db: Session = Depends(get_db)):
    """Soft delete a contact."""
    contact = get_contact_or_404(db, contact_id)
    contact.deleted_at = datetime.utcnow()
    db.commit()
    return {"status": "deleted", "contact_id": contact_id}


@router.post("/{contact_id}/star", response_model=ContactResponse)
def toggle_star(contact_id: int, db: Session = Depends(get_db)):
    contact = get_contact_or_404(db, contact_id)
    contact.is_starred = not contact.is_starred
    db.commit()
    db.refresh(contact)
    return contact


@router.post("/{contact_id}/score", response_model=ContactResponse)
def update_score(contact_id: int, request: ScoreRequest, db: Session = Depends(get_db)):
    contact = get_contact_or_404(db, contact_id)
    contact.relationship_score = request.relationship_score
    db.commit()
    db.refresh(contact)
    return contact


@router.post("/{contact_id}/status", response_model=ContactResponse)
def update_contact_status(contact_id: int, request: ContactStatusRequest, db: Session = Depends(get_db)):
    contact = get_contact_or_404(db, contact_id)
    contact.status = request.status
    db.commit()
    db.refresh(contact)
    return contact


@router.post("/{contact_id}/targets", response_model=TargetContactResponse, status_code=201)
def link_to_target(contact_id: int, request: LinkTargetRequest, db: Session = Depends(get_db)):
    """
    Link a contact to a target, or update an existing link.

    A primary link clears is_primary on the target's other links.
    """
    get_contact_or_404(db, contact_id)
    target = db.query(Target).filter(
        Target.id == request.target_id,
        Target.deleted_at.is_(None),
    ).first()
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")

    if request.is_primary:
        db.query(TargetContact).filter(
            TargetContact.target_id == request.target_id,
            TargetContact.contact_id != contact_id,
        ).update({TargetContact.is_primary: False}, synchronize_session=False)

    link = db.query(TargetContact).filter(
        TargetContact.target_id == request.target_id,
        TargetContact.contact_id == contact_id,
    ).first()
    if link:
        link.role = request.role
        link.is_primary = request.is_primary
    else:
        link = TargetContact(
            target_id=request.target_id,
            contact_id=contact_id,
            role=request.role,
            is_primary=request.is_primary,
        )
        db.add(link)
    db.commit()
    db.refresh(link)
    return link


@router.delete("/{contact_id}/targets/{target_id}")
def unlink_from_target(contact_id: int, target_id: int, db: Session = Depends(get_db)):
    link = db.query(TargetContact).filter(
        TargetContact.target_id == target_id,
        TargetContact.contact_id == contact_id,
    ).first()
    if not link:
        raise HTTPException(status_code=404, detail="Contact is not linked to this target")

    db.delete(link)
    db.commit()
    return {"status": "unlinked", "contact_id": contact_id, "target_id": target_id}
