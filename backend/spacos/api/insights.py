"""AI insights feed API routes."""
from typing import Optional
from dataclasses import asdict
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import structlog

from spacos.api.alerts import get_alert_or_404
from spacos.db.base import get_db
from spacos.schemas.insight import InsightFeedResponse, InsightActionRequest, InsightActionResponse
from spacos.services.insights import build_insight_feed

router = APIRouter(prefix="/insights", tags=["insights"])
logger = structlog.get_logger(__name__)

ALERT_PREFIX = "alert-"


def _alert_id(insight_id: str) -> Optional[int]:
    """Alert id behind an "alert-<id>" insight, or None for other insights."""
    if not insight_id.startswith(ALERT_PREFIX):
        return None
    try:
        return int(insight_id[len(ALERT_PREFIX):])
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid alert insight id")


@router.get("", response_model=InsightFeedResponse)
def get_insight_feed(
    spac_id: Optional[int] = None,
    limit: int = Query(10, ge=1, le=20),
    db: Session = Depends(get_db),
):
    """
    Aggregated insight feed.

    Combines compliance alerts, target score signals, recent score changes
    and recent filings. A failing source is skipped, not fatal.
    """
    feed = build_insight_feed(db, spac_id=spac_id, limit=limit)
    return InsightFeedResponse.model_validate(asdict(feed))


@router.post("/acknowledge", response_model=InsightActionResponse)
def acknowledge_insight(request: InsightActionRequest, db: Session = Depends(get_db)):
    alert_id = _alert_id(request.insight_id)
    if alert_id is None:
        return InsightActionResponse(success=True, type="insight")

    alert = get_alert_or_404(db, alert_id)
    if not alert.is_read:
        alert.is_read = True
        alert.read_at = datetime.utcnow()
        db.commit()

    logger.info("insight.acknowledged", insight_id=request.insight_id)
    return InsightActionResponse(success=True, type="alert")


@router.post("/dismiss", response_model=InsightActionResponse)
def dismiss_insight(request: InsightActionRequest, db: Session = Depends(get_db)):
    alert_id = _alert_id(request.insight_id)
    if alert_id is None:
        return InsightActionResponse(success=True, type="insight")

    alert = get_alert_or_404(db, alert_id)
    if not alert.is_dismissed:
        alert.is_dismissed = True
        alert.dismissed_at = datetime.utcnow()
        db.commit()

    logger.info("insight.dismissed", insight_id=request.insight_id)
    return InsightActionResponse(success=True, type="alert")
