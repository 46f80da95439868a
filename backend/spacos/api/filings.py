"""SEC filing API routes, including EDGAR sync."""
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
import httpx
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.api.spacs import get_spac_or_404
from spacos.db.base import get_db
from spacos.models.filing import Filing, FilingType, FilingStatus, SecComment
from spacos.schemas.common import Page
from spacos.schemas.filing import (
    FilingCreate, FilingUpdate, FilingResponse, FilingDetail, FilingStatusRequest,
    AmendmentRequest, SecCommentCreate, SecCommentRespond, SecCommentResponse,
    EdgarFiling, EdgarCompany, EdgarSyncResult, FilingStatistics,
)
from spacos.services.edgar_client import (
    EdgarClient, SECBlockedError, SECRateLimitError, get_edgar_client, map_form_type,
)
from spacos.services.transitions import (
    FILING_TRANSITIONS, InvalidTransitionError, allowed_transitions, validate_transition,
)

router = APIRouter(prefix="/filings", tags=["filings"])
logger = structlog.get_logger(__name__)

EDGAR_ERRORS = (httpx.HTTPError, SECBlockedError, SECRateLimitError, ValueError)


def get_filing_or_404(db: Session, filing_id: int) -> Filing:
    filing = db.query(Filing).filter(Filing.id == filing_id).first()
    if not filing:
        raise HTTPException(status_code=404, detail="Filing not found")
    return filing


def _parse_edgar_date(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        return None


@router.get("", response_model=Page[FilingResponse])
def list_filings(
    spac_id: Optional[int] = None,
    type: Optional[list[FilingType]] = Query(None),
    status: Optional[list[FilingStatus]] = Query(None),
    filed_from: Optional[datetime] = None,
    filed_to: Optional[datetime] = None,
    search: Optional[str] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List filings, most recently filed first.

    - **search**: Match title, accession number or description
    """
    q = db.query(Filing)

    if spac_id is not None:
        q = q.filter(Filing.spac_id == spac_id)
    if type:
        q = q.filter(Filing.type.in_(type))
    if status:
        q = q.filter(Filing.status.in_(status))
    if filed_from:
        q = q.filter(Filing.filed_date >= filed_from)
    if filed_to:
        q = q.filter(Filing.filed_date <= filed_to)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Filing.title.ilike(term),
            Filing.accession_number.ilike(term),
            Filing.description.ilike(term),
        ))

    q = q.order_by(Filing.filed_date.desc().nullslast(), Filing.created_at.desc(), Filing.id.desc())
    return paginate(q, pagination)


@router.get("/statistics", response_model=FilingStatistics)
def get_filing_statistics(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = db.query(Filing)
    if spac_id is not None:
        q = q.filter(Filing.spac_id == spac_id)
    filings = q.all()

    by_type: dict[str, int] = {}
    by_status: dict[str, int] = {}
    for f in filings:
        by_type[f.type.value] = by_type.get(f.type.value, 0) + 1
        by_status[f.status.value] = by_status.get(f.status.value, 0) + 1

    comments_q = db.query(SecComment).filter(SecComment.is_resolved == False)
    if spac_id is not None:
        comments_q = comments_q.filter(SecComment.spac_id == spac_id)

    now = datetime.utcnow()
    upcoming = [
        f for f in filings
        if f.due_date is not None
        and now <= f.due_date <= now + timedelta(days=30)
        and f.status not in (FilingStatus.FILED, FilingStatus.EFFECTIVE, FilingStatus.WITHDRAWN)
    ]

    return FilingStatistics(
        total=len(filings),
        by_type=by_type,
        by_status=by_status,
        pending_sec_comments=comments_q.count(),
        upcoming_due=len(upcoming),
    )


@router.get("/edgar/{cik}", response_model=list[EdgarFiling])
def get_edgar_filings(
    cik: str,
    form_types: Optional[list[str]] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    edgar: EdgarClient = Depends(get_edgar_client),
):
    """Live filing list for a CIK from SEC EDGAR."""
    try:
        filings = edgar.search_filings(cik, form_types=form_types, limit=limit)
    except EDGAR_ERRORS as e:
        logger.error("edgar.fetch_failed", cik=cik, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch filings from SEC EDGAR")

    return [
        EdgarFiling(**f, mapped_type=map_form_type(f["form_type"]))
        for f in filings
    ]


@router.get("/edgar/{cik}/company", response_model=EdgarCompany)
def get_edgar_company(cik: str, edgar: EdgarClient = Depends(get_edgar_client)):
    """Registrant details for a CIK, used to verify a SPAC's CIK before syncing."""
    try:
        return edgar.get_company_info(cik)
    except EDGAR_ERRORS as e:
        logger.error("edgar.company_failed", cik=cik, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to fetch company from SEC EDGAR")


@router.post("/sync/{spac_id}", response_model=EdgarSyncResult)
def sync_from_edgar(
    spac_id: int,
    form_types: Optional[list[str]] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    edgar: EdgarClient = Depends(get_edgar_client),
):
    """
    Import a SPAC's filings from SEC EDGAR.

    Known accession numbers are refreshed; new ones are created as FILED.
    Accession numbers already attached to a different SPAC are skipped.
    """
    spac = get_spac_or_404(db, spac_id)
    if not spac.cik:
        raise HTTPException(
            status_code=400,
            detail="SPAC does not have a CIK number. Please add the CIK to sync filings from SEC EDGAR.",
        )

    try:
        edgar_filings = edgar.search_filings(spac.cik, form_types=form_types, limit=limit)
    except EDGAR_ERRORS as e:
        logger.error("edgar.sync_failed", spac_id=spac_id, cik=spac.cik, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to sync filings from SEC EDGAR")

    if not edgar_filings:
        return EdgarSyncResult(synced=0, created=0, updated=0, skipped=0, filings=[])

    accession_numbers = [f["accession_number"] for f in edgar_filings]
    existing = {
        f.accession_number: f
        for f in db.query(Filing).filter(Filing.accession_number.in_(accession_numbers)).all()
    }

    created, updated, skipped = [], [], []
    for item in edgar_filings:
        acc = item["accession_number"]
        filed_date = _parse_edgar_date(item.get("filing_date"))
        current = existing.get(acc)

        if current is not None:
            if current.spac_id != spac_id:
                skipped.append(acc)
                continue
            current.filed_date = filed_date or current.filed_date
            current.edgar_url = item.get("url") or current.edgar_url
            updated.append(acc)
            continue

        filing = Filing(
            spac_id=spac_id,
            type=map_form_type(item["form_type"]),
            status=FilingStatus.FILED,
            title=f"{item['form_type']} - {item.get('description') or 'SEC Filing'}",
            description=item.get("description") or None,
            cik=spac.cik,
            accession_number=acc,
            edgar_url=item.get("url"),
            filed_date=filed_date,
        )
        db.add(filing)
        existing[acc] = filing
        created.append(acc)

    db.commit()

    synced = db.query(Filing).filter(
        Filing.spac_id == spac_id,
        Filing.accession_number.in_(created + updated),
    ).order_by(Filing.filed_date.desc().nullslast()).all()

    logger.info(
        "edgar.synced",
        spac_id=spac_id,
        created=len(created),
        updated=len(updated),
        skipped=len(skipped),
    )
    return EdgarSyncResult(
        synced=len(created) + len(updated),
        created=len(created),
        updated=len(updated),
        skipped=len(skipped),
        filings=synced,
    )


@router.post("/sec-comments/{comment_id}/respond", response_model=SecCommentResponse)
def respond_to_sec_comment(
    comment_id: int,
    request: SecCommentRespond,
    db: Session = Depends(get_db),
):
    comment = db.query(SecComment).filter(SecComment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=404, detail="SEC comment not found")

    now = datetime.utcnow()
    comment.response_text = request.response_text
    comment.response_date = now
    comment.is_resolved = request.is_resolved
    comment.resolved_date = now if request.is_resolved else None
    db.commit()
    db.refresh(comment)
    return comment


@router.get("/{filing_id}", response_model=FilingDetail)
def get_filing(filing_id: int, db: Session = Depends(get_db)):
    """Get filing with its amendments and SEC comments."""
    return get_filing_or_404(db, filing_id)


@router.get("/{filing_id}/transitions")
def get_filing_transitions(filing_id: int, db: Session = Depends(get_db)):
    filing = get_filing_or_404(db, filing_id)
    return {
        "status": filing.status.value,
        "allowed": allowed_transitions(FILING_TRANSITIONS, filing.status),
    }


@router.post("", response_model=FilingResponse, status_code=201)
def create_filing(request: FilingCreate, db: Session = Depends(get_db)):
    spac = get_spac_or_404(db, request.spac_id)

    if request.accession_number and db.query(Filing).filter(
        Filing.accession_number == request.accession_number
    ).first():
        raise HTTPException(status_code=409, detail="A filing with this accession number already exists")

    data = request.model_dump()
    data["cik"] = data["cik"] or spac.cik
    filing = Filing(status=FilingStatus.DRAFTING, **data)
    db.add(filing)
    db.commit()
    db.refresh(filing)

    logger.info("filing.created", filing_id=filing.id, spac_id=spac.id, type=filing.type.value)
    return filing


@router.patch("/{filing_id}", response_model=FilingResponse)
def update_filing(filing_id: int, request: FilingUpdate, db: Session = Depends(get_db)):
    filing = get_filing_or_404(db, filing_id)

    data = request.model_dump(exclude_unset=True)
    acc = data.get("accession_number")
    if acc and acc != filing.accession_number and db.query(Filing).filter(
        Filing.accession_number == acc
    ).first():
        raise HTTPException(status_code=409, detail="A filing with this accession number already exists")

    for field, value in data.items():
        setattr(filing, field, value)
    db.commit()
    db.refresh(filing)
    return filing


@router.delete("/{filing_id}")
def delete_filing(filing_id: int, db: Session = Depends(get_db)):
    """Delete a filing. Only drafts can be deleted."""
    filing = get_filing_or_404(db, filing_id)
    if filing.status != FilingStatus.DRAFTING:
        raise HTTPException(status_code=400, detail="Only draft filings can be deleted")

    db.delete(filing)
    db.commit()

    logger.info("filing.deleted", filing_id=filing_id)
    return {"status": "deleted", "filing_id": filing_id}


@router.post("/{filing_id}/status", response_model=FilingResponse)
def update_filing_status(
    filing_id: int,
    request: FilingStatusRequest,
    db: Session = Depends(get_db),
):
    """
    Move a filing through its workflow.

    FILED stamps filed_date (given or now) and records the accession
    number when supplied. EFFECTIVE stamps effective_date.
    """
    filing = get_filing_or_404(db, filing_id)

    try:
        validate_transition(FILING_TRANSITIONS, filing.status, request.status)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    previous = filing.status
    filing.status = request.status
    if request.status == FilingStatus.FILED:
        filing.filed_date = request.filed_date or datetime.utcnow()
        if request.accession_number:
            filing.accession_number = request.accession_number
    elif request.status == FilingStatus.EFFECTIVE:
        filing.effective_date = request.effective_date or datetime.utcnow()
    db.commit()
    db.refresh(filing)

    logger.info("filing.status_changed", filing_id=filing_id, from_status=previous.value, to_status=filing.status.value)
    return filing


@router.post("/{filing_id}/amendments", response_model=FilingResponse, status_code=201)
def create_amendment(
    filing_id: int,
    request: AmendmentRequest,
    db: Session = Depends(get_db),
):
    """Create the next numbered amendment of a filing as a new draft."""
    parent = get_filing_or_404(db, filing_id)

    last_number = db.query(func.max(Filing.amendment_number)).filter(
        Filing.parent_filing_id == parent.id
    ).scalar() or 0
    number = last_number + 1

    amendment = Filing(
        spac_id=parent.spac_id,
        type=parent.type,
        status=FilingStatus.DRAFTING,
        title=request.title or f"{parent.title or parent.type.value} - Amendment {number}",
        description=request.description or parent.description,
        cik=parent.cik,
        file_number=parent.file_number,
        due_date=request.due_date,
        amendment_number=number,
        parent_filing_id=parent.id,
    )
    db.add(amendment)
    db.commit()
    db.refresh(amendment)

    logger.info("filing.amended", filing_id=parent.id, amendment_id=amendment.id, amendment_number=number)
    return amendment


@router.post("/{filing_id}/sec-comments", response_model=SecCommentResponse, status_code=201)
def add_sec_comment(
    filing_id: int,
    request: SecCommentCreate,
    db: Session = Depends(get_db),
):
    filing = get_filing_or_404(db, filing_id)

    data = request.model_dump()
    data["received_date"] = data["received_date"] or datetime.utcnow()
    comment = SecComment(filing_id=filing.id, spac_id=filing.spac_id, **data)
    db.add(comment)

    filing.sec_comment_count = (filing.sec_comment_count or 0) + 1
    filing.sec_comment_date = comment.received_date
    db.commit()
    db.refresh(comment)
    return comment


@router.get("/{filing_id}/timeline")
def get_filing_timeline(filing_id: int, db: Session = Depends(get_db)):
    """Chronological history of a filing, its SEC comments and amendments."""
    filing = get_filing_or_404(db, filing_id)

    events = [{"type": "created", "title": "Filing created", "date": filing.created_at}]
    if filing.filed_date:
        events.append({"type": "filed", "title": f"{filing.type.value} filed", "date": filing.filed_date})
    for comment in filing.sec_comments:
        events.append({
            "type": "sec_comment",
            "title": f"SEC comment #{comment.comment_number} received",
            "date": comment.received_date,
        })
        if comment.response_date:
            events.append({
                "type": "sec_response",
                "title": f"Response to SEC comment #{comment.comment_number}",
                "date": comment.response_date,
            })
    for amendment in filing.amendments:
        events.append({
            "type": "amendment",
            "title": f"Amendment {amendment.amendment_number} created",
            "date": amendment.created_at,
        })
    if filing.effective_date:
        events.append({"type": "effective", "title": "Declared effective", "date": filing.effective_date})

    events.sort(key=lambda e: (e["date"] is None, e["date"] or datetime.max))
    return events
