"""Investment-bank mandate API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import structlog

from spacos.api.organizations import get_organization_or_404
from spacos.db.base import get_db
from spacos.models.contact import Contact
from spacos.models.mandate import Mandate, MandateStatus, ServiceType
from spacos.models.organization import OrganizationType
from spacos.schemas.mandate import (
    MandateCreate, MandateUpdate, MandateResponse, MandateList, OrganizationMandates,
)

router = APIRouter(prefix="/mandates", tags=["mandates"])
logger = structlog.get_logger(__name__)


def get_mandate_or_404(db: Session, mandate_id: int) -> Mandate:
    mandate = db.query(Mandate).filter(Mandate.id == mandate_id).first()
    if not mandate:
        raise HTTPException(status_code=404, detail="Mandate not found")
    return mandate


def _resolve_contacts(db: Session, contact_ids: list[int]) -> list[Contact]:
    """Load contacts by id; any unknown id is a 400."""
    if not contact_ids:
        return []
    ids = set(contact_ids)
    contacts = db.query(Contact).filter(Contact.id.in_(ids), Contact.deleted_at.is_(None)).all()
    missing = ids - {c.id for c in contacts}
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown contact ids: {', '.join(str(i) for i in sorted(missing))}",
        )
    return contacts


@router.get("", response_model=MandateList)
def list_mandates(
    status: Optional[MandateStatus] = None,
    service_type: Optional[ServiceType] = None,
    organization_id: Optional[int] = None,
    limit: int = Query(20, ge=1, le=100),
    cursor: Optional[int] = Query(None, description="Return mandates with id below this value"),
    db: Session = Depends(get_db),
):
    """List mandates newest first with cursor pagination."""
    q = db.query(Mandate)
    if status:
        q = q.filter(Mandate.status == status)
    if service_type:
        q = q.filter(Mandate.service_type == service_type)
    if organization_id is not None:
        q = q.filter(Mandate.organization_id == organization_id)
    if cursor is not None:
        q = q.filter(Mandate.id < cursor)

    rows = q.order_by(Mandate.id.desc()).limit(limit + 1).all()
    next_cursor = rows[limit - 1].id if len(rows) > limit else None
    return MandateList(items=rows[:limit], next_cursor=next_cursor)


@router.get("/organization/{organization_id}", response_model=OrganizationMandates)
def list_organization_mandates(organization_id: int, db: Session = Depends(get_db)):
    get_organization_or_404(db, organization_id)
    mandates = db.query(Mandate).filter(
        Mandate.organization_id == organization_id
    ).order_by(Mandate.created_at.desc(), Mandate.id.desc()).all()

    by_status = {s.value: 0 for s in MandateStatus}
    for m in mandates:
        by_status[m.status.value] += 1

    return OrganizationMandates(
        organization_id=organization_id,
        mandates=mandates,
        by_status=by_status,
        total_deal_value=float(sum(m.deal_value or 0 for m in mandates)),
    )


@router.get("/{mandate_id}", response_model=MandateResponse)
def get_mandate(mandate_id: int, db: Session = Depends(get_db)):
    return get_mandate_or_404(db, mandate_id)


@router.post("", response_model=MandateResponse, status_code=201)
def create_mandate(request: MandateCreate, db: Session = Depends(get_db)):
    """Create a mandate. The owning organization must be an investment bank."""
    org = get_organization_or_404(db, request.organization_id)
    if org.type != OrganizationType.IB:
        raise HTTPException(status_code=400, detail="Mandates can only belong to investment bank organizations")

    contacts = _resolve_contacts(db, request.contact_ids)
    mandate = Mandate(**request.model_dump(exclude={"contact_ids"}))
    mandate.contacts = contacts
    db.add(mandate)
    db.commit()
    db.refresh(mandate)

    logger.info("mandate.created", mandate_id=mandate.id, organization_id=org.id)
    return mandate


@router.patch("/{mandate_id}", response_model=MandateResponse)
def update_mandate(mandate_id: int, request: MandateUpdate, db: Session = Depends(get_db)):
    mandate = get_mandate_or_404(db, mandate_id)

    data = request.model_dump(exclude_unset=True)
    contact_ids = data.pop("contact_ids", None)
    if contact_ids is not None:
        mandate.contacts = _resolve_contacts(db, contact_ids)
    for field, value in data.items():
        setattr(mandate, field, value)
    db.commit()
    db.refresh(mandate)
    return mandate


@router.delete("/{mandate_id}")
def delete_mandate(mandate_id: int, db: Session = Depends(get_db)):
    mandate = get_mandate_or_404(db, mandate_id)
    db.delete(mandate)
    db.commit()

    logger.info("mandate.deleted", mandate_id=mandate_id)
    return {"status": "deleted", "mandate_id": mandate_id}
