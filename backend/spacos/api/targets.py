"""Acquisition target API routes."""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.api.spacs import get_spac_or_404
from spacos.db.base import get_db
from spacos.models.contact import Contact
from spacos.models.target import Target, TargetStatus, DealStage, TargetContact, ScoreHistory
from spacos.models.task import Task, TaskStatus
from spacos.schemas.common import Page
from spacos.schemas.target import (
    TargetCreate, TargetUpdate, TargetResponse, TargetStatusRequest, AssignSpacRequest,
    ScoresRequest, AiScoreRequest, ScoreHistoryResponse, ScoreTrend, ManageContactsRequest,
    TargetContactResponse, DueDiligenceStatus, ValuationComparison, TargetStatistics,
)

router = APIRouter(prefix="/targets", tags=["targets"])
logger = structlog.get_logger(__name__)

PIPELINE_EXCLUDED = [TargetStatus.PASSED, TargetStatus.TERMINATED, TargetStatus.CLOSED]

# Milestone date stamped when a target enters the status
STATUS_DATE_FIELDS = {
    TargetStatus.NDA_SIGNED: "nda_signed_date",
    TargetStatus.LOI: "loi_signed_date",
    TargetStatus.DEFINITIVE: "da_signed_date",
    TargetStatus.CLOSED: "actual_close_date",
}

SCORE_FIELDS = ["management_score", "market_score", "financial_score", "operational_score", "risk_score"]

TREND_THRESHOLD_PCT = 5.0
TREND_WINDOW = 5


def get_target_or_404(db: Session, target_id: int) -> Target:
    target = db.query(Target).filter(Target.id == target_id, Target.deleted_at.is_(None)).first()
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")
    return target


def _mean(values: list) -> Optional[float]:
    values = [float(v) for v in values if v is not None]
    return sum(values) / len(values) if values else None


@router.get("", response_model=Page[TargetResponse])
def list_targets(
    spac_id: Optional[int] = None,
    status: Optional[list[TargetStatus]] = Query(None),
    stage: Optional[list[DealStage]] = Query(None),
    industry: Optional[str] = None,
    sector: Optional[str] = None,
    search: Optional[str] = None,
    priority_min: Optional[int] = Query(None, ge=1, le=5),
    priority_max: Optional[int] = Query(None, ge=1, le=5),
    ev_min: Optional[float] = Query(None, ge=0),
    ev_max: Optional[float] = Query(None, ge=0),
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List targets.

    Ordered by priority (1 first), then most recently updated.
    """
    q = db.query(Target).filter(Target.deleted_at.is_(None))

    if spac_id is not None:
        q = q.filter(Target.spac_id == spac_id)
    if status:
        q = q.filter(Target.status.in_(status))
    if stage:
        q = q.filter(Target.stage.in_(stage))
    if industry:
        q = q.filter(Target.industry.ilike(industry))
    if sector:
        q = q.filter(Target.sector.ilike(sector))
    if search:
        term = f"%{search}%"
        q = q.filter(or_(
            Target.name.ilike(term),
            Target.description.ilike(term),
            Target.industry.ilike(term),
        ))
    if priority_min is not None:
        q = q.filter(Target.priority >= priority_min)
    if priority_max is not None:
        q = q.filter(Target.priority <= priority_max)
    if ev_min is not None:
        q = q.filter(Target.enterprise_value >= ev_min)
    if ev_max is not None:
        q = q.filter(Target.enterprise_value <= ev_max)

    q = q.order_by(Target.priority.asc(), Target.updated_at.desc(), Target.id.asc())
    return paginate(q, pagination)


@router.get("/pipeline")
def get_target_pipeline(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Active targets grouped by status, highest priority and probability first."""
    q = db.query(Target).filter(
        Target.deleted_at.is_(None),
        Target.status.notin_(PIPELINE_EXCLUDED),
    )
    if spac_id is not None:
        q = q.filter(Target.spac_id == spac_id)
    targets = q.order_by(Target.priority.asc(), Target.probability.desc()).all()

    columns = []
    for status in TargetStatus:
        if status in PIPELINE_EXCLUDED:
            continue
        members = [t for t in targets if t.status == status]
        columns.append({
            "status": status.value,
            "count": len(members),
            "targets": [TargetResponse.model_validate(t).model_dump(mode="json") for t in members],
        })
    return columns


@router.get("/statistics", response_model=TargetStatistics)
def get_target_statistics(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = db.query(Target).filter(Target.deleted_at.is_(None))
    if spac_id is not None:
        q = q.filter(Target.spac_id == spac_id)
    targets = q.all()

    by_status = {s.value: 0 for s in TargetStatus}
    by_stage = {s.value: 0 for s in DealStage}
    industries: dict[str, int] = {}
    for t in targets:
        by_status[t.status.value] += 1
        by_stage[t.stage.value] += 1
        if t.industry:
            industries[t.industry] = industries.get(t.industry, 0) + 1

    top_industries = sorted(industries.items(), key=lambda kv: (-kv[1], kv[0]))[:10]
    progressed = [t for t in targets if t.status != TargetStatus.IDENTIFIED]
    closed = [t for t in targets if t.status == TargetStatus.CLOSED]

    return TargetStatistics(
        total=len(targets),
        by_status=by_status,
        by_stage=by_stage,
        top_industries=[{"industry": name, "count": count} for name, count in top_industries],
        average_enterprise_value=_mean([t.enterprise_value for t in targets]),
        average_ev_revenue=_mean([t.ev_revenue for t in targets]),
        average_ev_ebitda=_mean([t.ev_ebitda for t in targets]),
        conversion_rate=len(closed) / len(progressed) * 100 if progressed else 0.0,
    )


@router.get("/{target_id}", response_model=TargetResponse)
def get_target(target_id: int, db: Session = Depends(get_db)):
    return get_target_or_404(db, target_id)


@router.post("", response_model=TargetResponse, status_code=201)
def create_target(request: TargetCreate, db: Session = Depends(get_db)):
    if request.spac_id is not None:
        get_spac_or_404(db, request.spac_id)

    target = Target(**request.model_dump())
    field = STATUS_DATE_FIELDS.get(target.status)
    if field:
        setattr(target, field, datetime.utcnow())
    db.add(target)
    db.commit()
    db.refresh(target)

    logger.info("target.created", target_id=target.id, spac_id=target.spac_id)
    return target


@router.patch("/{target_id}", response_model=TargetResponse)
def update_target(target_id: int, request: TargetUpdate, db: Session = Depends(get_db)):
    target = get_target_or_404(db, target_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(target, field, value)
    db.commit()
    db.refresh(target)
    return target


@router.delete("/{target_id}")
def delete_target(target_id: int, db: Session = Depends(get_db)):
    """Soft delete a target."""
    target = get_target_or_404(db, target_id)
    target.deleted_at = datetime.utcnow()
    db.commit()
    return {"status": "deleted", "target_id": target_id}


@router.post("/{target_id}/status", response_model=TargetResponse)
def update_target_status(
    target_id: int,
    request: TargetStatusRequest,
    db: Session = Depends(get_db),
):
    """Change pipeline status, stamping the matching milestone date."""
    target = get_target_or_404(db, target_id)

    previous = target.status
    target.status = request.status
    field = STATUS_DATE_FIELDS.get(request.status)
    if field:
        setattr(target, field, datetime.utcnow())
    db.commit()
    db.refresh(target)

    logger.info("target.status_changed", target_id=target_id, from_status=previous.value, to_status=target.status.value)
    return target


@router.post("/{target_id}/assign-spac", response_model=TargetResponse)
def assign_to_spac(target_id: int, request: AssignSpacRequest, db: Session = Depends(get_db)):
    target = get_target_or_404(db, target_id)
    get_spac_or_404(db, request.spac_id)

    target.spac_id = request.spac_id
    db.commit()
    db.refresh(target)
    return target


@router.post("/{target_id}/scores", response_model=TargetResponse)
def update_scores(target_id: int, request: ScoresRequest, db: Session = Depends(get_db)):
    """
    Set dimension scores (1-10).

    overall_score becomes the mean of the scores supplied in this request.
    """
    target = get_target_or_404(db, target_id)

    provided = request.model_dump(exclude_none=True)
    for field, value in provided.items():
        setattr(target, field, value)
    target.overall_score = _mean(list(provided.values()))
    db.commit()
    db.refresh(target)
    return target


@router.post("/{target_id}/ai-score", response_model=ScoreHistoryResponse, status_code=201)
def record_ai_score(target_id: int, request: AiScoreRequest, db: Session = Depends(get_db)):
    """Record a new AI score and append it to the target's score history."""
    target = get_target_or_404(db, target_id)

    entry = ScoreHistory(target_id=target.id, **request.model_dump())
    target.ai_score = request.ai_score
    db.add(entry)
    db.commit()
    db.refresh(entry)

    logger.info("target.ai_scored", target_id=target_id, ai_score=request.ai_score)
    return entry


@router.get("/{target_id}/score-history", response_model=list[ScoreHistoryResponse])
def get_score_history(
    target_id: int,
    limit: int = Query(30, ge=1, le=200),
    db: Session = Depends(get_db),
):
    get_target_or_404(db, target_id)
    return db.query(ScoreHistory).filter(
        ScoreHistory.target_id == target_id
    ).order_by(ScoreHistory.recorded_at.desc()).limit(limit).all()


@router.get("/{target_id}/score-trend", response_model=ScoreTrend)
def get_score_trend(target_id: int, db: Session = Depends(get_db)):
    """
    Compare the two most recent AI scores.

    A change under 5% either way is stable. A previous score of 0 has no
    meaningful percentage and also counts as stable. score_count and
    average_score cover the last TREND_WINDOW entries.
    """
    get_target_or_404(db, target_id)
    recent = db.query(ScoreHistory).filter(
        ScoreHistory.target_id == target_id
    ).order_by(ScoreHistory.recorded_at.desc(), ScoreHistory.id.desc()).limit(TREND_WINDOW).all()

    if not recent:
        return ScoreTrend(target_id=target_id, trend="new", score_count=0)

    scores = [entry.ai_score for entry in recent]
    average = round(sum(scores) / len(scores), 1)
    if len(scores) == 1:
        return ScoreTrend(
            target_id=target_id,
            current_score=scores[0],
            trend="new",
            score_count=1,
            average_score=average,
        )

    current, previous = scores[0], scores[1]
    change = current - previous
    change_pct = round(change / previous * 100, 1) if previous > 0 else 0.0

    if abs(change_pct) < TREND_THRESHOLD_PCT:
        trend = "stable"
    elif change_pct > 0:
        trend = "improving"
    else:
        trend = "declining"

    return ScoreTrend(
        target_id=target_id,
        current_score=current,
        previous_score=previous,
        change=change,
        change_pct=change_pct,
        trend=trend,
        score_count=len(scores),
        average_score=average,
    )


@router.get("/{target_id}/contacts", response_model=list[TargetContactResponse])
def list_target_contacts(target_id: int, db: Session = Depends(get_db)):
    get_target_or_404(db, target_id)
    return db.query(TargetContact).filter(
        TargetContact.target_id == target_id
    ).order_by(TargetContact.is_primary.desc(), TargetContact.id.asc()).all()


@router.post("/{target_id}/contacts", response_model=list[TargetContactResponse])
def manage_contacts(
    target_id: int,
    request: ManageContactsRequest,
    db: Session = Depends(get_db),
):
    """
    Add (upsert) and remove contact links in one call.

    Setting is_primary on a link clears it on the target's other links.
    """
    get_target_or_404(db, target_id)

    for link in request.add:
        contact = db.query(Contact).filter(
            Contact.id == link.contact_id,
            Contact.deleted_at.is_(None),
        ).first()
        if not contact:
            raise HTTPException(status_code=404, detail=f"Contact {link.contact_id} not found")

        if link.is_primary:
            db.query(TargetContact).filter(
                TargetContact.target_id == target_id,
                TargetContact.contact_id != link.contact_id,
            ).update({TargetContact.is_primary: False}, synchronize_session=False)

        existing = db.query(TargetContact).filter(
            TargetContact.target_id == target_id,
            TargetContact.contact_id == link.contact_id,
        ).first()
        if existing:
            existing.role = link.role
            existing.is_primary = link.is_primary
        else:
            db.add(TargetContact(
                target_id=target_id,
                contact_id=link.contact_id,
                role=link.role,
                is_primary=link.is_primary,
            ))
        db.flush()

    if request.remove:
        db.query(TargetContact).filter(
            TargetContact.target_id == target_id,
            TargetContact.contact_id.in_(request.remove),
        ).delete(synchronize_session=False)

    db.commit()
    return list_target_contacts(target_id, db)


@router.get("/{target_id}/due-diligence", response_model=DueDiligenceStatus)
def get_due_diligence_status(target_id: int, db: Session = Depends(get_db)):
    """Completion of the target's due diligence tasks."""
    get_target_or_404(db, target_id)
    tasks = db.query(Task).filter(
        Task.target_id == target_id,
        Task.category == "due_diligence",
        Task.deleted_at.is_(None),
    ).all()

    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return DueDiligenceStatus(
        target_id=target_id,
        total_tasks=len(tasks),
        completed_tasks=completed,
        pending_tasks=len(tasks) - completed,
        completion_rate=completed / len(tasks) * 100 if tasks else 0.0,
    )


@router.get("/{target_id}/valuation-comparison", response_model=ValuationComparison)
def get_valuation_comparison(
    target_id: int,
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """
    Compare the target's multiples with same-industry comparables.

    Premiums are (target - average) / average * 100, null when either side
    is missing.
    """
    target = get_target_or_404(db, target_id)

    comparables = []
    if target.industry:
        comparables = db.query(Target).filter(
            Target.id != target.id,
            Target.deleted_at.is_(None),
            func.lower(Target.industry) == target.industry.lower(),
            Target.enterprise_value.isnot(None),
        ).order_by(Target.enterprise_value.desc()).limit(limit).all()

    avg_ev_revenue = _mean([c.ev_revenue for c in comparables])
    avg_ev_ebitda = _mean([c.ev_ebitda for c in comparables])

    def premium(value, average):
        if value is None or not average:
            return None
        return (float(value) - average) / average * 100

    return ValuationComparison(
        target_id=target.id,
        industry=target.industry,
        comparable_count=len(comparables),
        target_ev_revenue=target.ev_revenue,
        target_ev_ebitda=target.ev_ebitda,
        average_ev_revenue=avg_ev_revenue,
        average_ev_ebitda=avg_ev_ebitda,
        ev_revenue_premium_pct=premium(target.ev_revenue, avg_ev_revenue),
        ev_ebitda_premium_pct=premium(target.ev_ebitda, avg_ev_ebitda),
        comparables=[
            {
                "id": c.id,
                "name": c.name,
                "enterprise_value": float(c.enterprise_value),
                "ev_revenue": float(c.ev_revenue) if c.ev_revenue is not None else None,
                "ev_ebitda": float(c.ev_ebitda) if c.ev_ebitda is not None else None,
            }
            for c in comparables
        ],
    )
