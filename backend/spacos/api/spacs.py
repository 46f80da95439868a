"""SPAC API routes."""
from typing import Optional
from datetime import datetime, timedelta
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
from dateutil.relativedelta import relativedelta
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.filing import Filing
from spacos.models.spac import Spac, SpacStatus, SpacPhase
from spacos.models.target import Target, TargetStatus
from spacos.models.task import Task, TaskStatus
from spacos.schemas.common import Page
from spacos.schemas.spac import (
    SpacCreate, SpacUpdate, SpacResponse, SpacSummary, StatusUpdateRequest,
    ExtendDeadlineRequest, TimelineEvent, SpacStatistics, PipelineColumn,
)
from spacos.services.transitions import (
    SPAC_TRANSITIONS, InvalidTransitionError, allowed_transitions, validate_transition,
)

router = APIRouter(prefix="/spacs", tags=["spacs"])
logger = structlog.get_logger(__name__)

SORTABLE_FIELDS = {
    "name": Spac.name,
    "ticker": Spac.ticker,
    "created_at": Spac.created_at,
    "updated_at": Spac.updated_at,
    "deadline_date": Spac.deadline_date,
    "ipo_date": Spac.ipo_date,
    "ipo_size": Spac.ipo_size,
    "trust_balance": Spac.trust_balance,
}

DEADLINE_WATCH_STATUSES = [SpacStatus.SEARCHING, SpacStatus.LOI_SIGNED]
INACTIVE_TARGET_STATUSES = [TargetStatus.PASSED, TargetStatus.TERMINATED, TargetStatus.CLOSED]
OPEN_TASK_STATUSES = [TaskStatus.NOT_STARTED, TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED]


def get_spac_or_404(db: Session, spac_id: int) -> Spac:
    spac = db.query(Spac).filter(Spac.id == spac_id, Spac.deleted_at.is_(None)).first()
    if not spac:
        raise HTTPException(status_code=404, detail="SPAC not found")
    return spac


def _ensure_ticker_free(db: Session, ticker: str, exclude_id: Optional[int] = None):
    q = db.query(Spac).filter(func.upper(Spac.ticker) == ticker.upper())
    if exclude_id is not None:
        q = q.filter(Spac.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="A SPAC with this ticker already exists")


def _to_float(value) -> Optional[float]:
    return float(value) if value is not None else None


@router.get("", response_model=Page[SpacResponse])
def list_spacs(
    organization_id: Optional[int] = None,
    status: Optional[list[SpacStatus]] = Query(None),
    phase: Optional[list[SpacPhase]] = Query(None),
    ticker: Optional[str] = None,
    search: Optional[str] = None,
    deadline_before: Optional[datetime] = None,
    deadline_after: Optional[datetime] = None,
    ipo_size_min: Optional[float] = Query(None, ge=0),
    ipo_size_max: Optional[float] = Query(None, ge=0),
    sort_by: str = Query("updated_at", pattern="^(" + "|".join(SORTABLE_FIELDS) + ")$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List SPACs with filtering, sorting and pagination.

    - **status** / **phase**: Repeatable enum filters
    - **search**: Case-insensitive match on name, ticker or description
    - **deadline_before** / **deadline_after**: Deadline window
    """
    q = db.query(Spac).filter(Spac.deleted_at.is_(None))

    if organization_id is not None:
        q = q.filter(Spac.organization_id == organization_id)
    if status:
        q = q.filter(Spac.status.in_(status))
    if phase:
        q = q.filter(Spac.phase.in_(phase))
    if ticker:
        q = q.filter(Spac.ticker.ilike(f"%{ticker}%"))
    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Spac.name.ilike(term),
            Spac.ticker.ilike(term),
            Spac.description.ilike(term),
        ))
    if deadline_before:
        q = q.filter(Spac.deadline_date <= deadline_before)
    if deadline_after:
        q = q.filter(Spac.deadline_date >= deadline_after)
    if ipo_size_min is not None:
        q = q.filter(Spac.ipo_size >= ipo_size_min)
    if ipo_size_max is not None:
        q = q.filter(Spac.ipo_size <= ipo_size_max)

    column = SORTABLE_FIELDS[sort_by]
    order = column.asc() if sort_order == "asc" else column.desc()
    q = q.order_by(order, Spac.id.asc())

    return paginate(q, pagination)


@router.get("/statistics", response_model=SpacStatistics)
def get_spac_statistics(
    organization_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Aggregate counts and trust/IPO totals across SPACs."""
    q = db.query(Spac).filter(Spac.deleted_at.is_(None))
    if organization_id is not None:
        q = q.filter(Spac.organization_id == organization_id)
    spacs = q.all()

    by_status = {s.value: 0 for s in SpacStatus}
    by_phase = {p.value: 0 for p in SpacPhase}
    for spac in spacs:
        by_status[spac.status.value] += 1
        by_phase[spac.phase.value] += 1

    ipo_sizes = [float(s.ipo_size) for s in spacs if s.ipo_size is not None]
    balances = [float(s.trust_balance) for s in spacs if s.trust_balance is not None]
    cutoff = datetime.utcnow() - timedelta(days=30)

    return SpacStatistics(
        total=len(spacs),
        by_status=by_status,
        by_phase=by_phase,
        average_ipo_size=sum(ipo_sizes) / len(ipo_sizes) if ipo_sizes else None,
        total_ipo_size=sum(ipo_sizes),
        average_trust_balance=sum(balances) / len(balances) if balances else None,
        total_trust_balance=sum(balances),
        created_last_30_days=sum(1 for s in spacs if s.created_at and s.created_at >= cutoff),
    )


@router.get("/pipeline", response_model=list[PipelineColumn])
def get_spac_pipeline(
    organization_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """SPACs grouped by status, with active target and open task counts."""
    q = db.query(Spac).filter(Spac.deleted_at.is_(None))
    if organization_id is not None:
        q = q.filter(Spac.organization_id == organization_id)
    spacs = q.order_by(Spac.name.asc()).all()

    spac_ids = [s.id for s in spacs]
    target_counts = dict(
        db.query(Target.spac_id, func.count(Target.id)).filter(
            Target.spac_id.in_(spac_ids),
            Target.deleted_at.is_(None),
            Target.status.notin_(INACTIVE_TARGET_STATUSES),
        ).group_by(Target.spac_id).all()
    ) if spac_ids else {}
    task_counts = dict(
        db.query(Task.spac_id, func.count(Task.id)).filter(
            Task.spac_id.in_(spac_ids),
            Task.deleted_at.is_(None),
            Task.status.in_(OPEN_TASK_STATUSES),
        ).group_by(Task.spac_id).all()
    ) if spac_ids else {}

    columns = []
    for status in SpacStatus:
        members = [s for s in spacs if s.status == status]
        columns.append(PipelineColumn(
            status=status,
            count=len(members),
            spacs=[
                {
                    **SpacSummary.model_validate(s).model_dump(mode="json"),
                    "active_targets": target_counts.get(s.id, 0),
                    "open_tasks": task_counts.get(s.id, 0),
                }
                for s in members
            ],
        ))
    return columns


@router.get("/approaching-deadlines", response_model=list[SpacSummary])
def get_approaching_deadlines(
    days_ahead: int = Query(90, ge=1, le=365),
    organization_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """SPACs still searching or at LOI whose deadline falls within days_ahead."""
    now = datetime.utcnow()
    q = db.query(Spac).filter(
        Spac.deleted_at.is_(None),
        Spac.status.in_(DEADLINE_WATCH_STATUSES),
        Spac.deadline_date.isnot(None),
        Spac.deadline_date >= now,
        Spac.deadline_date <= now + timedelta(days=days_ahead),
    )
    if organization_id is not None:
        q = q.filter(Spac.organization_id == organization_id)
    return q.order_by(Spac.deadline_date.asc()).all()


@router.get("/{spac_id}", response_model=SpacResponse)
def get_spac(spac_id: int, db: Session = Depends(get_db)):
    """Get SPAC by ID."""
    return get_spac_or_404(db, spac_id)


@router.get("/{spac_id}/transitions")
def get_spac_transitions(spac_id: int, db: Session = Depends(get_db)):
    """Statuses the SPAC may move to next."""
    spac = get_spac_or_404(db, spac_id)
    return {
        "status": spac.status.value,
        "allowed": allowed_transitions(SPAC_TRANSITIONS, spac.status),
    }


@router.post("", response_model=SpacResponse, status_code=201)
def create_spac(request: SpacCreate, db: Session = Depends(get_db)):
    _ensure_ticker_free(db, request.ticker)

    data = request.model_dump()
    data["ticker"] = data["ticker"].upper()
    spac = Spac(**data)
    db.add(spac)
    db.commit()
    db.refresh(spac)

    logger.info("spac.created", spac_id=spac.id, ticker=spac.ticker)
    return spac


@router.patch("/{spac_id}", response_model=SpacResponse)
def update_spac(spac_id: int, request: SpacUpdate, db: Session = Depends(get_db)):
    spac = get_spac_or_404(db, spac_id)

    data = request.model_dump(exclude_unset=True)
    if data.get("ticker"):
        data["ticker"] = data["ticker"].upper()
        if data["ticker"] != spac.ticker:
            _ensure_ticker_free(db, data["ticker"], exclude_id=spac.id)

    for field, value in data.items():
        setattr(spac, field, value)
    db.commit()
    db.refresh(spac)
    return spac


@router.delete("/{spac_id}")
def delete_spac(spac_id: int, db: Session = Depends(get_db)):
    """Soft delete a SPAC."""
    spac = get_spac_or_404(db, spac_id)
    spac.deleted_at = datetime.utcnow()
    db.commit()

    logger.info("spac.deleted", spac_id=spac_id)
    return {"status": "deleted", "spac_id": spac_id}


@router.post("/{spac_id}/status", response_model=SpacResponse)
def update_spac_status(
    spac_id: int,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
):
    """Move a SPAC to a new lifecycle status."""
    spac = get_spac_or_404(db, spac_id)

    try:
        validate_transition(SPAC_TRANSITIONS, spac.status, request.status)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    previous = spac.status
    spac.status = request.status
    now = datetime.utcnow()
    if request.status == SpacStatus.DA_ANNOUNCED and spac.da_announced_date is None:
        spac.da_announced_date = now
    if request.status == SpacStatus.COMPLETED and spac.closing_date is None:
        spac.closing_date = now
    db.commit()
    db.refresh(spac)

    logger.info("spac.status_changed", spac_id=spac_id, from_status=previous.value, to_status=spac.status.value)
    return spac


@router.post("/{spac_id}/extend-deadline", response_model=SpacResponse)
def extend_deadline(
    spac_id: int,
    request: ExtendDeadlineRequest,
    db: Session = Depends(get_db),
):
    """
    Extend the business combination deadline by whole months.

    An optional sponsor contribution is added to the trust balance.
    """
    spac = get_spac_or_404(db, spac_id)

    if spac.deadline_date is None:
        raise HTTPException(status_code=400, detail="SPAC does not have a deadline set")
    if spac.extensions_used >= spac.max_extensions:
        raise HTTPException(status_code=400, detail="Maximum extensions already used")

    new_deadline = spac.deadline_date + relativedelta(months=request.months)
    spac.deadline_date = new_deadline
    spac.extension_deadline = new_deadline
    spac.extensions_used += 1
    if request.contribution_amount:
        spac.trust_balance = (spac.trust_balance or Decimal("0")) + Decimal(str(request.contribution_amount))
    db.commit()
    db.refresh(spac)

    logger.info(
        "spac.deadline_extended",
        spac_id=spac_id,
        months=request.months,
        new_deadline=new_deadline.isoformat(),
        extensions_used=spac.extensions_used,
    )
    return spac


@router.get("/{spac_id}/timeline", response_model=list[TimelineEvent])
def get_spac_timeline(spac_id: int, db: Session = Depends(get_db)):
    """
    Key dates for a SPAC in chronological order.

    Undated events sort last.
    """
    spac = get_spac_or_404(db, spac_id)
    now = datetime.utcnow()

    def event(type_: str, title: str, date: Optional[datetime]) -> TimelineEvent:
        state = "past" if date is not None and date <= now else "future"
        return TimelineEvent(type=type_, title=title, date=date, status=state)

    events = []
    if spac.ipo_date:
        events.append(event("ipo", "IPO", spac.ipo_date))
    if spac.da_announced_date:
        events.append(event("da_announced", "Definitive Agreement Announced", spac.da_announced_date))
    if spac.vote_date:
        events.append(event("vote", "Shareholder Vote", spac.vote_date))
    if spac.closing_date:
        events.append(event("closing", "Closing", spac.closing_date))
    if spac.deadline_date:
        events.append(event("deadline", "Business Combination Deadline", spac.deadline_date))

    filings = db.query(Filing).filter(
        Filing.spac_id == spac_id,
        Filing.filed_date.isnot(None),
    ).all()
    for filing in filings:
        events.append(event("filing", f"{filing.type.value} Filed", filing.filed_date))

    events.sort(key=lambda e: (e.date is None, e.date or datetime.max))
    return events
