"""Interaction (CRM activity log) API routes."""
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session
import structlog

from spacos.api.contacts import get_contact_or_404
from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.contact import Contact, Interaction, InteractionType
from spacos.schemas.common import Page
from spacos.schemas.contact import (
    InteractionCreate, InteractionUpdate, InteractionResponse, ContactInteractionStats,
)

router = APIRouter(prefix="/interactions", tags=["interactions"])
logger = structlog.get_logger(__name__)


def get_interaction_or_404(db: Session, interaction_id: int) -> Interaction:
    interaction = db.query(Interaction).filter(Interaction.id == interaction_id).first()
    if not interaction:
        raise HTTPException(status_code=404, detail="Interaction not found")
    return interaction


def _refresh_last_interaction(db: Session, contact: Contact):
    latest = db.query(Interaction.date).filter(
        Interaction.contact_id == contact.id
    ).order_by(Interaction.date.desc()).first()
    contact.last_interaction_at = latest[0] if latest else None


def _by_type(interactions) -> dict[str, int]:
    counts = {t.value: 0 for t in InteractionType}
    for i in interactions:
        counts[i.type.value] += 1
    return counts


@router.get("", response_model=Page[InteractionResponse])
def list_interactions(
    contact_id: Optional[int] = None,
    type: Optional[list[InteractionType]] = Query(None),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """List interactions, newest first."""
    q = db.query(Interaction)

    if contact_id is not None:
        q = q.filter(Interaction.contact_id == contact_id)
    if type:
        q = q.filter(Interaction.type.in_(type))
    if date_from:
        q = q.filter(Interaction.date >= date_from)
    if date_to:
        q = q.filter(Interaction.date <= date_to)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Interaction.subject.ilike(term),
            Interaction.description.ilike(term),
            Interaction.outcome.ilike(term),
        ))

    return paginate(q.order_by(Interaction.date.desc(), Interaction.id.desc()), pagination)


@router.get("/recent", response_model=list[InteractionResponse])
def get_recent_interactions(limit: int = Query(10, ge=1, le=50), db: Session = Depends(get_db)):
    return db.query(Interaction).order_by(
        Interaction.date.desc(), Interaction.id.desc()
    ).limit(limit).all()


@router.get("/statistics")
def get_interaction_statistics(db: Session = Depends(get_db)):
    """Totals by type and a daily count for the last 30 days."""
    now = datetime.utcnow()
    start = (now - timedelta(days=29)).replace(hour=0, minute=0, second=0, microsecond=0)

    interactions = db.query(Interaction).all()
    daily = {(start + timedelta(days=d)).date().isoformat(): 0 for d in range(30)}
    for i in interactions:
        if i.date >= start:
            key = i.date.date().isoformat()
            if key in daily:
                daily[key] += 1

    return {
        "total": len(interactions),
        "by_type": _by_type(interactions),
        "daily_trend": [{"date": day, "count": count} for day, count in daily.items()],
    }


@router.get("/contact/{contact_id}/timeline", response_model=list[InteractionResponse])
def get_contact_timeline(
    contact_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_contact_or_404(db, contact_id)
    return db.query(Interaction).filter(
        Interaction.contact_id == contact_id
    ).order_by(Interaction.date.desc(), Interaction.id.desc()).limit(limit).all()


@router.get("/contact/{contact_id}/statistics", response_model=ContactInteractionStats)
def get_contact_interaction_stats(contact_id: int, db: Session = Depends(get_db)):
    """
    Interaction counts for one contact.

    average_per_month spreads the total over the months since the first
    interaction, counting the current month.
    """
    get_contact_or_404(db, contact_id)
    interactions = db.query(Interaction).filter(
        Interaction.contact_id == contact_id
    ).order_by(Interaction.date.asc()).all()

    now = datetime.utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    first = interactions[0].date if interactions else None
    last = interactions[-1].date if interactions else None

    months = 1
    if first:
        months = max(1, (now.year - first.year) * 12 + (now.month - first.month) + 1)

    return ContactInteractionStats(
        contact_id=contact_id,
        total=len(interactions),
        by_type=_by_type(interactions),
        last_interaction=last,
        first_interaction=first,
        this_month=sum(1 for i in interactions if i.date >= month_start),
        average_per_month=round(len(interactions) / months, 2),
    )


@router.get("/{interaction_id}", response_model=InteractionResponse)
def get_interaction(interaction_id: int, db: Session = Depends(get_db)):
    return get_interaction_or_404(db, interaction_id)


@router.post("", response_model=InteractionResponse, status_code=201)
def create_interaction(request: InteractionCreate, db: Session = Depends(get_db)):
    """Log an interaction and bump the contact's last_interaction_at."""
    contact = get_contact_or_404(db, request.contact_id)

    data = request.model_dump()
    data["date"] = data["date"] or datetime.utcnow()
    interaction = Interaction(**data)
    db.add(interaction)

    if contact.last_interaction_at is None or interaction.date > contact.last_interaction_at:
        contact.last_interaction_at = interaction.date
    db.commit()
    db.refresh(interaction)

    logger.info("interaction.created", interaction_id=interaction.id, contact_id=contact.id, type=interaction.type.value)
    return interaction


@router.patch("/{interaction_id}", response_model=InteractionResponse)
def update_interaction(
    interaction_id: int,
    request: InteractionUpdate,
    db: Session = Depends(get_db),
):
    interaction = get_interaction_or_404(db, interaction_id)
    data = request.model_dump(exclude_unset=True)
    for field, value in data.items():
        if field == "date" and value is None:
            continue
        setattr(interaction, field, value)
    db.flush()

    if "date" in data:
        _refresh_last_interaction(db, interaction.contact)
    db.commit()
    db.refresh(interaction)
    return interaction


@router.delete("/{interaction_id}")
def delete_interaction(interaction_id: int, db: Session = Depends(get_db)):
    interaction = get_interaction_or_404(db, interaction_id)
    contact = interaction.contact
    db.delete(interaction)
    db.flush()

    _refresh_last_interaction(db, contact)
    db.commit()
    return {"status": "deleted", "interaction_id": interaction_id}
