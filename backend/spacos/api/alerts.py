"""Compliance alert API routes."""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.alert import ComplianceAlert, ComplianceAlertType, AlertSeverity
from spacos.schemas.alert import (
    AlertCreate, AlertResponse, AlertIdsRequest, GenerateAlertsRequest, GenerateAlertsResponse,
)
from spacos.schemas.common import Page, CountResponse
from spacos.services.alert_generator import sync_alerts, cleanup_dismissed_alerts

router = APIRouter(prefix="/alerts", tags=["alerts"])
logger = structlog.get_logger(__name__)


def get_alert_or_404(db: Session, alert_id: int) -> ComplianceAlert:
    alert = db.query(ComplianceAlert).filter(ComplianceAlert.id == alert_id).first()
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


def _visible(db: Session, spac_id: Optional[int] = None):
    q = db.query(ComplianceAlert).filter(ComplianceAlert.is_dismissed == False)
    if spac_id is not None:
        q = q.filter(ComplianceAlert.spac_id == spac_id)
    return q


@router.get("", response_model=Page[AlertResponse])
def list_alerts(
    spac_id: Optional[int] = None,
    severity: Optional[list[AlertSeverity]] = Query(None),
    type: Optional[list[ComplianceAlertType]] = Query(None),
    is_read: Optional[bool] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """List non-dismissed alerts, unread first, then newest."""
    q = _visible(db, spac_id)

    if severity:
        q = q.filter(ComplianceAlert.severity.in_(severity))
    if type:
        q = q.filter(ComplianceAlert.type.in_(type))
    if is_read is not None:
        q = q.filter(ComplianceAlert.is_read == is_read)

    q = q.order_by(ComplianceAlert.is_read.asc(), ComplianceAlert.created_at.desc(), ComplianceAlert.id.desc())
    return paginate(q, pagination)


@router.get("/unread-count", response_model=CountResponse)
def get_unread_count(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    count = _visible(db, spac_id).filter(ComplianceAlert.is_read == False).count()
    return CountResponse(count=count)


@router.get("/recent", response_model=list[AlertResponse])
def get_recent_alerts(
    limit: int = Query(5, ge=1, le=50),
    spac_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return _visible(db, spac_id).order_by(
        ComplianceAlert.created_at.desc(), ComplianceAlert.id.desc()
    ).limit(limit).all()


@router.post("", response_model=AlertResponse, status_code=201)
def create_alert(request: AlertCreate, db: Session = Depends(get_db)):
    alert = ComplianceAlert(**request.model_dump())
    db.add(alert)
    db.commit()
    db.refresh(alert)

    logger.info("alert.created", alert_id=alert.id, type=alert.type.value)
    return alert


@router.post("/generate", response_model=GenerateAlertsResponse)
def generate_alerts(request: GenerateAlertsRequest, db: Session = Depends(get_db)):
    """Scan deadlines, filings and SEC comments and store new alerts."""
    created = sync_alerts(db, spac_id=request.spac_id)
    return GenerateAlertsResponse(created=created)


@router.post("/read-all")
def mark_all_read(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    updated = _visible(db, spac_id).filter(ComplianceAlert.is_read == False).update(
        {"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False,
    )
    db.commit()
    return {"updated": updated}


@router.post("/read")
def mark_many_read(request: AlertIdsRequest, db: Session = Depends(get_db)):
    updated = db.query(ComplianceAlert).filter(
        ComplianceAlert.id.in_(request.ids),
        ComplianceAlert.is_read == False,
    ).update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return {"updated": updated}


@router.post("/dismiss")
def dismiss_many(request: AlertIdsRequest, db: Session = Depends(get_db)):
    updated = db.query(ComplianceAlert).filter(
        ComplianceAlert.id.in_(request.ids),
        ComplianceAlert.is_dismissed == False,
    ).update({"is_dismissed": True, "dismissed_at": datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return {"updated": updated}


@router.delete("/cleanup")
def cleanup_alerts(days_old: int = Query(30, ge=1), db: Session = Depends(get_db)):
    """Delete alerts dismissed more than days_old days ago."""
    return {"deleted": cleanup_dismissed_alerts(db, days_old=days_old)}


@router.get("/{alert_id}", response_model=AlertResponse)
def get_alert(alert_id: int, db: Session = Depends(get_db)):
    return get_alert_or_404(db, alert_id)


@router.post("/{alert_id}/read", response_model=AlertResponse)
def mark_read(alert_id: int, db: Session = Depends(get_db)):
    alert = get_alert_or_404(db, alert_id)
    if not alert.is_read:
        alert.is_read = True
        alert.read_at = datetime.utcnow()
        db.commit()
        db.refresh(alert)
    return alert


@router.post("/{alert_id}/dismiss", response_model=AlertResponse)
def dismiss_alert(alert_id: int, db: Session = Depends(get_db)):
    alert = get_alert_or_404(db, alert_id)
    if not alert.is_dismissed:
        alert.is_dismissed = True
        alert.dismissed_at = datetime.utcnow()
        db.commit()
        db.refresh(alert)

    logger.info("alert.dismissed", alert_id=alert_id)
    return alert
