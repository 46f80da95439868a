"""Organization API routes."""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.organization import Organization, OrganizationType
from spacos.schemas.common import Page
from spacos.schemas.organization import OrganizationCreate, OrganizationUpdate, OrganizationResponse

router = APIRouter(prefix="/organizations", tags=["organizations"])
logger = structlog.get_logger(__name__)


def get_organization_or_404(db: Session, organization_id: int) -> Organization:
    org = db.query(Organization).filter(
        Organization.id == organization_id,
        Organization.deleted_at.is_(None),
    ).first()
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


def _ensure_slug_free(db: Session, slug: str, exclude_id: Optional[int] = None):
    q = db.query(Organization).filter(Organization.slug == slug)
    if exclude_id is not None:
        q = q.filter(Organization.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="An organization with this slug already exists")


@router.get("", response_model=Page[OrganizationResponse])
def list_organizations(
    search: Optional[str] = None,
    type: Optional[OrganizationType] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List organizations.

    - **search**: Match name, slug or industry
    - **type**: Filter by organization type
    """
    q = db.query(Organization).filter(Organization.deleted_at.is_(None))

    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Organization.name.ilike(term),
            Organization.slug.ilike(term),
            Organization.industry.ilike(term),
        ))
    if type:
        q = q.filter(Organization.type == type)

    return paginate(q.order_by(Organization.name.asc()), pagination)


@router.get("/{organization_id}", response_model=OrganizationResponse)
def get_organization(organization_id: int, db: Session = Depends(get_db)):
    return get_organization_or_404(db, organization_id)


@router.post("", response_model=OrganizationResponse, status_code=201)
def create_organization(request: OrganizationCreate, db: Session = Depends(get_db)):
    _ensure_slug_free(db, request.slug)

    org = Organization(**request.model_dump())
    db.add(org)
    db.commit()
    db.refresh(org)

    logger.info("organization.created", organization_id=org.id, slug=org.slug)
    return org


@router.patch("/{organization_id}", response_model=OrganizationResponse)
def update_organization(
    organization_id: int,
    request: OrganizationUpdate,
    db: Session = Depends(get_db),
):
    org = get_organization_or_404(db, organization_id)

    data = request.model_dump(exclude_unset=True)
    if data.get("slug") and data["slug"] != org.slug:
        _ensure_slug_free(db, data["slug"], exclude_id=org.id)

    for field, value in data.items():
        setattr(org, field, value)
    db.commit()
    db.refresh(org)
    return org


@router.delete("/{organization_id}")
def delete_organization(organization_id: int, db: Session = Depends(get_db)):
    """Soft delete an organization."""
    org = get_organization_or_404(db, organization_id)
    org.deleted_at = datetime.utcnow()
    db.commit()

    logger.info("organization.deleted", organization_id=organization_id)
    return {"status": "deleted", "organization_id": organization_id}
