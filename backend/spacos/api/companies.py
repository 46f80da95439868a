"""CRM company API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.company import Company, CompanyDeal
from spacos.models.contact import Contact
from spacos.schemas.common import Page
from spacos.schemas.company import (
    CompanyCreate, CompanyUpdate, CompanyResponse, CompanyDetail, CompanySearchResult,
    CompanyDealBase, CompanyDealUpdate, CompanyDealResponse,
)

router = APIRouter(prefix="/companies", tags=["companies"])
logger = structlog.get_logger(__name__)


def get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


def _get_deal_or_404(db: Session, company_id: int, deal_id: int) -> CompanyDeal:
    deal = db.query(CompanyDeal).filter(
        CompanyDeal.id == deal_id,
        CompanyDeal.company_id == company_id,
    ).first()
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")
    return deal


def _count_by(db: Session, column, limit: Optional[int] = None) -> list[dict]:
    q = db.query(column, func.count(Company.id)).filter(column.isnot(None)).group_by(column)
    rows = sorted(q.all(), key=lambda r: (-r[1], r[0]))
    if limit:
        rows = rows[:limit]
    return [{"name": name, "count": count} for name, count in rows]


@router.get("", response_model=Page[CompanyResponse])
def list_companies(
    search: Optional[str] = None,
    industry: Optional[str] = None,
    type: Optional[str] = None,
    size: Optional[str] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    q = db.query(Company)

    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Company.name.ilike(term),
            Company.description.ilike(term),
            Company.industry.ilike(term),
        ))
    if industry:
        q = q.filter(Company.industry == industry)
    if type:
        q = q.filter(Company.type == type)
    if size:
        q = q.filter(Company.size == size)

    return paginate(q.order_by(Company.name.asc()), pagination)


@router.get("/search", response_model=list[CompanySearchResult])
def search_companies(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Typeahead search by company name."""
    return db.query(Company).filter(
        Company.name.ilike(f"%{q}%")
    ).order_by(Company.name.asc()).limit(limit).all()


@router.get("/statistics")
def get_company_statistics(db: Session = Depends(get_db)):
    total = db.query(Company).count()
    recent = db.query(Company).order_by(Company.created_at.desc(), Company.id.desc()).limit(5).all()

    return {
        "total": total,
        "top_industries": _count_by(db, Company.industry, limit=10),
        "by_type": _count_by(db, Company.type),
        "by_size": _count_by(db, Company.size),
        "recent": [CompanySearchResult.model_validate(c).model_dump() for c in recent],
    }


@router.get("/{company_id}", response_model=CompanyDetail)
def get_company(company_id: int, db: Session = Depends(get_db)):
    """Get company with contact count and deals."""
    company = get_company_or_404(db, company_id)
    contact_count = db.query(Contact).filter(
        Contact.company_id == company_id,
        Contact.deleted_at.is_(None),
    ).count()

    detail = CompanyDetail.model_validate(company)
    detail.contact_count = contact_count
    return detail


@router.post("", response_model=CompanyResponse, status_code=201)
def create_company(request: CompanyCreate, db: Session = Depends(get_db)):
    company = Company(**request.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)

    logger.info("company.created", company_id=company.id)
    return company


@router.patch("/{company_id}", response_model=CompanyResponse)
def update_company(company_id: int, request: CompanyUpdate, db: Session = Depends(get_db)):
    company = get_company_or_404(db, company_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(company, field, value)
    db.commit()
    db.refresh(company)
    return company


@router.delete("/{company_id}")
def delete_company(
    company_id: int,
    cascade_contacts: bool = False,
    db: Session = Depends(get_db),
):
    """
    Delete a company and its deals.

    Fails with 412 while contacts still reference the company, unless
    cascade_contacts is set, in which case those contacts are detached.
    """
    company = get_company_or_404(db, company_id)

    contact_count = db.query(Contact).filter(Contact.company_id == company_id).count()
    if contact_count and not cascade_contacts:
        raise HTTPException(
            status_code=412,
            detail=(
                f"Cannot delete company with {contact_count} associated contacts. "
                f"Set cascade_contacts to detach them."
            ),
        )

    try:
        if contact_count:
            db.query(Contact).filter(Contact.company_id == company_id).update(
                {Contact.company_id: None}, synchronize_session=False
            )
        db.query(CompanyDeal).filter(CompanyDeal.company_id == company_id).delete(
            synchronize_session=False
        )
        db.delete(company)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("company.deleted", company_id=company_id, contacts_detached=contact_count)
    return {"status": "deleted", "company_id": company_id, "contacts_detached": contact_count}


@router.get("/{company_id}/deals", response_model=list[CompanyDealResponse])
def list_company_deals(company_id: int, db: Session = Depends(get_db)):
    get_company_or_404(db, company_id)
    return db.query(CompanyDeal).filter(
        CompanyDeal.company_id == company_id
    ).order_by(CompanyDeal.created_at.desc()).all()


@router.post("/{company_id}/deals", response_model=CompanyDealResponse, status_code=201)
def add_company_deal(company_id: int, request: CompanyDealBase, db: Session = Depends(get_db)):
    get_company_or_404(db, company_id)
    deal = CompanyDeal(company_id=company_id, **request.model_dump())
    db.add(deal)
    db.commit()
    db.refresh(deal)
    return deal


@router.patch("/{company_id}/deals/{deal_id}", response_model=CompanyDealResponse)
def update_company_deal(
    company_id: int,
    deal_id: int,
    request: CompanyDealUpdate,
    db: Session = Depends(get_db),
):
    deal = _get_deal_or_404(db, company_id, deal_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(deal, field, value)
    db.commit()
    db.refresh(deal)
    return deal


@router.delete("/{company_id}/deals/{deal_id}")
def delete_company_deal(company_id: int, deal_id: int, db: Session = Depends(get_db)):
    deal = _get_deal_or_404(db, company_id, deal_id)
    db.delete(deal)
    db.commit()
    return {"status": "deleted", "deal_id": deal_id}
