"""
AI insights aggregation.

Insights are assembled from independent sources (compliance alerts,
target AI scores, score history, recent filings). A source that fails is
logged and skipped so the feed still renders from the others.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spacos.models.alert import ComplianceAlert, ComplianceAlertType, AlertSeverity
from spacos.models.filing import Filing, FilingStatus
from spacos.models.spac import Spac
from spacos.models.target import Target, TargetStatus, ScoreHistory

logger = structlog.get_logger(__name__)

PRIORITY_ORDER = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}
STATUS_ORDER = {"NEW": 0, "ACKNOWLEDGED": 1, "RESOLVED": 2, "DISMISSED": 3}

ALERT_INSIGHT_TYPES = {
    ComplianceAlertType.DEADLINE_APPROACHING: "ALERT",
    ComplianceAlertType.DEADLINE_CRITICAL: "ALERT",
    ComplianceAlertType.DEADLINE_MISSED: "RISK",
    ComplianceAlertType.FILING_REQUIRED: "RECOMMENDATION",
    ComplianceAlertType.COMPLIANCE_WARNING: "RISK",
}

EARLY_STAGE_STATUSES = [
    TargetStatus.IDENTIFIED,
    TargetStatus.PRELIMINARY,
    TargetStatus.INITIAL_OUTREACH,
    TargetStatus.NDA_SIGNED,
]
ADVANCED_STAGE_STATUSES = [
    TargetStatus.DUE_DILIGENCE,
    TargetStatus.LOI_SUBMITTED,
    TargetStatus.NEGOTIATION,
]

HIGH_SCORE_THRESHOLD = 80
LOW_SCORE_THRESHOLD = 50
SCORE_CHANGE_THRESHOLD = 10


@dataclass
class Insight:
    id: str
    type: str  # RISK, OPPORTUNITY, ALERT, RECOMMENDATION
    priority: str  # CRITICAL, HIGH, MEDIUM, LOW
    status: str  # NEW, ACKNOWLEDGED, RESOLVED, DISMISSED
    title: str
    description: str
    source: str
    timestamp: datetime
    confidence: float
    action: Optional[dict] = None
    metrics: list[dict] = field(default_factory=list)


@dataclass
class MarketIntel:
    id: str
    headline: str
    summary: str
    relevance: int
    source: str
    timestamp: datetime
    tags: list[str] = field(default_factory=list)


@dataclass
class InsightFeed:
    insights: list[Insight]
    market_intelligence: list[MarketIntel]
    last_updated: datetime
    summary: dict


def _humanize(status) -> str:
    return status.value.replace("_", " ").lower() if status else "early stage"


def alert_insights(db: Session, spac_id: Optional[int], limit: int) -> list[Insight]:
    q = db.query(ComplianceAlert).filter(
        ComplianceAlert.is_dismissed == False,
        ComplianceAlert.severity.in_([AlertSeverity.high, AlertSeverity.medium]),
    )
    if spac_id is not None:
        q = q.filter(ComplianceAlert.spac_id == spac_id)
    alerts = q.order_by(ComplianceAlert.is_read.asc(), ComplianceAlert.created_at.desc()).limit(limit).all()

    insights = []
    for alert in alerts:
        insights.append(Insight(
            id=f"alert-{alert.id}",
            type=ALERT_INSIGHT_TYPES.get(alert.type, "ALERT"),
            priority="HIGH" if alert.severity == AlertSeverity.high else "MEDIUM",
            status="ACKNOWLEDGED" if alert.is_read else "NEW",
            title=alert.title,
            description=alert.description or "",
            source="Compliance Monitor",
            timestamp=alert.created_at,
            confidence=95,
            action={"label": "View SPAC", "href": f"/spacs/{alert.spac_id}"} if alert.spac_id else None,
            metrics=[{
                "label": "Due Date",
                "value": alert.due_date.date().isoformat(),
                "trend": "neutral",
            }] if alert.due_date else [],
        ))
    return insights


def target_score_insights(db: Session, spac_id: Optional[int]) -> list[Insight]:
    base = db.query(Target).filter(Target.deleted_at.is_(None))
    if spac_id is not None:
        base = base.filter(Target.spac_id == spac_id)

    insights = []

    high = base.filter(
        Target.ai_score >= HIGH_SCORE_THRESHOLD,
        Target.status.in_(EARLY_STAGE_STATUSES),
    ).order_by(Target.ai_score.desc()).limit(5).all()
    for target in high:
        insights.append(Insight(
            id=f"target-opp-{target.id}",
            type="OPPORTUNITY",
            priority="HIGH" if target.ai_score >= 90 else "MEDIUM",
            status="NEW",
            title=f"High-Fit Target: {target.name}",
            description=(
                f"{target.industry or 'Target'} with strong AI score. "
                f"Currently in {_humanize(target.status)}."
            ),
            source="AI Target Scoring",
            timestamp=target.updated_at,
            confidence=float(target.ai_score),
            action={"label": "View Target", "href": f"/targets/{target.id}"},
            metrics=[{"label": "AI Score", "value": f"{target.ai_score:g}%", "trend": "up"}],
        ))

    low = base.filter(
        Target.ai_score > 0,
        Target.ai_score < LOW_SCORE_THRESHOLD,
        Target.status.in_(ADVANCED_STAGE_STATUSES),
    ).order_by(Target.ai_score.asc()).limit(3).all()
    for target in low:
        insights.append(Insight(
            id=f"target-risk-{target.id}",
            type="RISK",
            priority="HIGH" if target.ai_score < 30 else "MEDIUM",
            status="NEW",
            title=f"Low AI Score: {target.name}",
            description=(
                f"Target in advanced stage ({_humanize(target.status)}) but with "
                f"below-threshold AI score. Review recommended."
            ),
            source="AI Target Scoring",
            timestamp=target.updated_at,
            confidence=75,
            action={"label": "Review Target", "href": f"/targets/{target.id}"},
            metrics=[{"label": "AI Score", "value": f"{target.ai_score:g}%", "trend": "down"}],
        ))

    return insights


def score_change_insights(db: Session, spac_id: Optional[int], now: datetime) -> list[Insight]:
    """Flag targets whose latest two scores in the last week moved by 10+ points."""
    q = db.query(ScoreHistory).join(Target).filter(
        ScoreHistory.recorded_at >= now - timedelta(days=7),
    )
    if spac_id is not None:
        q = q.filter(Target.spac_id == spac_id)
    recent = q.order_by(ScoreHistory.recorded_at.desc()).limit(10).all()

    by_target: dict[int, list[ScoreHistory]] = {}
    for entry in recent:
        by_target.setdefault(entry.target_id, []).append(entry)

    insights = []
    for scores in by_target.values():
        if len(scores) < 2:
            continue
        latest, previous = scores[0], scores[1]
        change = latest.ai_score - previous.ai_score
        if abs(change) < SCORE_CHANGE_THRESHOLD:
            continue

        description = f"AI score changed by {change:+g} points in the last 7 days."
        if latest.thesis:
            description += f" {latest.thesis[:100]}..."

        insights.append(Insight(
            id=f"score-change-{latest.id}",
            type="OPPORTUNITY" if change > 0 else "ALERT",
            priority="HIGH" if abs(change) >= 20 else "MEDIUM",
            status="NEW",
            title=f"Score {'Increased' if change > 0 else 'Decreased'} for {latest.target.name}",
            description=description,
            source="AI Score Tracking",
            timestamp=latest.recorded_at,
            confidence=88,
            action={"label": "View Analysis", "href": f"/targets/{latest.target_id}"},
            metrics=[
                {"label": "Previous", "value": f"{previous.ai_score:g}%", "trend": "neutral"},
                {"label": "Current", "value": f"{latest.ai_score:g}%", "trend": "up" if change > 0 else "down"},
            ],
        ))
    return insights


def filing_intelligence(db: Session, now: datetime) -> list[MarketIntel]:
    filings = db.query(Filing).join(Spac).filter(
        Filing.status.in_([FilingStatus.FILED, FilingStatus.EFFECTIVE]),
        Filing.filed_date >= now - timedelta(days=30),
    ).order_by(Filing.filed_date.desc()).limit(5).all()

    intel = []
    for filing in filings:
        form = filing.type.value.replace("_", " ")
        ticker = filing.spac.ticker or "SPAC"
        intel.append(MarketIntel(
            id=f"filing-intel-{filing.id}",
            headline=f"{form} Filed: {filing.spac.name}",
            summary=filing.description or f"{ticker} filed {filing.type.value.replace('_', '-')} with the SEC.",
            relevance=85,
            source="SEC Filing",
            timestamp=filing.filed_date or filing.created_at,
            tags=[form, filing.status.value, ticker],
        ))
    return intel


def sort_insights(insights: list[Insight]) -> list[Insight]:
    """Order by status, then priority, then newest first."""
    return sorted(
        insights,
        key=lambda i: (
            STATUS_ORDER.get(i.status, len(STATUS_ORDER)),
            PRIORITY_ORDER.get(i.priority, len(PRIORITY_ORDER)),
            -i.timestamp.timestamp() if i.timestamp else 0,
        ),
    )


def summarize(insights: list[Insight]) -> dict:
    return {
        "total_insights": len(insights),
        "new_insights": sum(1 for i in insights if i.status == "NEW"),
        "high_priority": sum(1 for i in insights if i.priority in ("HIGH", "CRITICAL")),
        "by_type": {
            "risk": sum(1 for i in insights if i.type == "RISK"),
            "opportunity": sum(1 for i in insights if i.type == "OPPORTUNITY"),
            "alert": sum(1 for i in insights if i.type == "ALERT"),
            "recommendation": sum(1 for i in insights if i.type == "RECOMMENDATION"),
        },
    }


def _collect(db: Session, name: str, fetch: Callable[[], list]) -> list:
    try:
        return fetch()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("insights.source_failed", source=name, error=str(e))
        return []


def build_insight_feed(
    db: Session,
    spac_id: Optional[int] = None,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> InsightFeed:
    now = now or datetime.utcnow()

    insights: list[Insight] = []
    insights += _collect(db, "compliance_alerts", lambda: alert_insights(db, spac_id, limit))
    insights += _collect(db, "target_scores", lambda: target_score_insights(db, spac_id))
    insights += _collect(db, "score_history", lambda: score_change_insights(db, spac_id, now))
    intel = _collect(db, "filings", lambda: filing_intelligence(db, now))

    ordered = sort_insights(insights)
    return InsightFeed(
        insights=ordered[:limit],
        market_intelligence=intel[:5],
        last_updated=now,
        summary=summarize(ordered),
    )
