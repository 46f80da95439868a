"""
Compliance alert generation.

Scans active SPAC deadlines, open filings and unresolved SEC comments and
turns anything due within a week (or already overdue) into a
ComplianceAlert. Day counts round up, so a deadline 2.1 days away is
treated as 3 days out.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from spacos.models.alert import ComplianceAlert, ComplianceAlertType, AlertSeverity
from spacos.models.filing import Filing, FilingStatus, SecComment
from spacos.models.spac import Spac
from spacos.services.transitions import TERMINAL_SPAC_STATUSES

logger = structlog.get_logger(__name__)

CRITICAL_DAYS = 3
WARNING_DAYS = 7

CLOSED_FILING_STATUSES = {FilingStatus.FILED, FilingStatus.EFFECTIVE, FilingStatus.WITHDRAWN}

SEVERITY_ORDER = {AlertSeverity.high: 0, AlertSeverity.medium: 1, AlertSeverity.low: 2}


@dataclass
class AlertCandidate:
    """An alert computed from current state, not yet persisted."""
    spac_id: int
    type: ComplianceAlertType
    severity: AlertSeverity
    title: str
    description: str
    due_date: Optional[datetime]


def days_until(due: datetime, now: datetime) -> int:
    return math.ceil((due - now) / timedelta(days=1))


def _spac_label(spac: Spac) -> str:
    return f"{spac.name} ({spac.ticker or 'N/A'})"


def _filing_type_label(filing: Filing) -> str:
    return filing.type.value if filing.type else "Filing"


def spac_deadline_alert(spac: Spac, now: datetime) -> Optional[AlertCandidate]:
    deadline = spac.extension_deadline or spac.deadline_date
    if deadline is None or spac.status in TERMINAL_SPAC_STATUSES:
        return None

    days = days_until(deadline, now)
    if days < 0:
        return AlertCandidate(
            spac_id=spac.id,
            type=ComplianceAlertType.DEADLINE_MISSED,
            severity=AlertSeverity.high,
            title=f"SPAC Deadline Missed: {spac.name}",
            description=(
                f"The business combination deadline for {_spac_label(spac)} was "
                f"{abs(days)} days ago. Immediate action required."
            ),
            due_date=deadline,
        )
    if days <= CRITICAL_DAYS:
        return AlertCandidate(
            spac_id=spac.id,
            type=ComplianceAlertType.DEADLINE_CRITICAL,
            severity=AlertSeverity.high,
            title=f"Critical: SPAC Deadline in {days} Days",
            description=(
                f"{_spac_label(spac)} has a business combination deadline in "
                f"{days} days. Urgent action required."
            ),
            due_date=deadline,
        )
    if days <= WARNING_DAYS:
        return AlertCandidate(
            spac_id=spac.id,
            type=ComplianceAlertType.DEADLINE_APPROACHING,
            severity=AlertSeverity.medium,
            title=f"SPAC Deadline Approaching: {spac.name}",
            description=f"{_spac_label(spac)} has a business combination deadline in {days} days.",
            due_date=deadline,
        )
    return None


def filing_due_alert(filing: Filing, spac_name: str, now: datetime) -> Optional[AlertCandidate]:
    if filing.due_date is None or filing.status in CLOSED_FILING_STATUSES:
        return None

    form = _filing_type_label(filing)
    days = days_until(filing.due_date, now)
    if days < 0:
        return AlertCandidate(
            spac_id=filing.spac_id,
            type=ComplianceAlertType.DEADLINE_MISSED,
            severity=AlertSeverity.high,
            title=f"Filing Deadline Missed: {form}",
            description=(
                f"The {form} filing for {spac_name} was due {abs(days)} days ago. "
                f"File immediately to avoid penalties."
            ),
            due_date=filing.due_date,
        )
    if days <= CRITICAL_DAYS:
        return AlertCandidate(
            spac_id=filing.spac_id,
            type=ComplianceAlertType.DEADLINE_CRITICAL,
            severity=AlertSeverity.high,
            title=f"Critical: {form} Due in {days} Days",
            description=f"{form} filing for {spac_name} is due in {days} days. Finalize and file promptly.",
            due_date=filing.due_date,
        )
    if days <= WARNING_DAYS:
        return AlertCandidate(
            spac_id=filing.spac_id,
            type=ComplianceAlertType.FILING_REQUIRED,
            severity=AlertSeverity.medium,
            title=f"Filing Due Soon: {form}",
            description=f"{form} filing for {spac_name} is due in {days} days.",
            due_date=filing.due_date,
        )
    return None


def sec_comment_alert(comment: SecComment, spac_name: str, now: datetime) -> Optional[AlertCandidate]:
    if comment.due_date is None or comment.is_resolved:
        return None

    days = days_until(comment.due_date, now)
    if days < 0:
        return AlertCandidate(
            spac_id=comment.spac_id,
            type=ComplianceAlertType.COMPLIANCE_WARNING,
            severity=AlertSeverity.high,
            title="Overdue SEC Comment Response",
            description=(
                f"SEC Comment #{comment.comment_number} for {spac_name} is "
                f"{abs(days)} days overdue."
            ),
            due_date=comment.due_date,
        )
    if days <= CRITICAL_DAYS:
        return AlertCandidate(
            spac_id=comment.spac_id,
            type=ComplianceAlertType.DEADLINE_CRITICAL,
            severity=AlertSeverity.high,
            title="Critical: SEC Comment Response Due",
            description=(
                f"Response to SEC Comment #{comment.comment_number} for {spac_name} "
                f"is due in {days} days."
            ),
            due_date=comment.due_date,
        )
    if days <= WARNING_DAYS:
        return AlertCandidate(
            spac_id=comment.spac_id,
            type=ComplianceAlertType.FILING_REQUIRED,
            severity=AlertSeverity.medium,
            title="SEC Comment Response Due Soon",
            description=(
                f"Response to SEC Comment #{comment.comment_number} for {spac_name} "
                f"is due in {days} days."
            ),
            due_date=comment.due_date,
        )
    return None


def sort_candidates(candidates: list[AlertCandidate]) -> list[AlertCandidate]:
    """Severity first, then earliest due date; undated alerts go last."""
    return sorted(
        candidates,
        key=lambda a: (
            SEVERITY_ORDER.get(a.severity, len(SEVERITY_ORDER)),
            a.due_date is None,
            a.due_date or datetime.max,
        ),
    )


def generate_alerts(
    db: Session,
    spac_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[AlertCandidate]:
    """Compute alert candidates for one SPAC or all active SPACs."""
    now = now or datetime.utcnow()
    candidates: list[AlertCandidate] = []

    spac_q = db.query(Spac).filter(Spac.deleted_at.is_(None))
    if spac_id is not None:
        spac_q = spac_q.filter(Spac.id == spac_id)
    spacs = {s.id: s for s in spac_q.all()}

    for spac in spacs.values():
        alert = spac_deadline_alert(spac, now)
        if alert:
            candidates.append(alert)

    if spacs:
        filings = db.query(Filing).filter(
            Filing.spac_id.in_(spacs.keys()),
            Filing.due_date.isnot(None),
            Filing.status.notin_(CLOSED_FILING_STATUSES),
        ).all()
        for filing in filings:
            alert = filing_due_alert(filing, spacs[filing.spac_id].name, now)
            if alert:
                candidates.append(alert)

        comments = db.query(SecComment).filter(
            SecComment.spac_id.in_(spacs.keys()),
            SecComment.due_date.isnot(None),
            SecComment.is_resolved == False,
        ).all()
        for comment in comments:
            alert = sec_comment_alert(comment, spacs[comment.spac_id].name, now)
            if alert:
                candidates.append(alert)

    return sort_candidates(candidates)


def sync_alerts(db: Session, spac_id: Optional[int] = None, now: Optional[datetime] = None) -> int:
    """
    Persist generated alerts, skipping any that already exist.

    An alert already exists when a non-dismissed alert has the same
    spac_id, type and title.

    Returns:
        Number of alerts created
    """
    created = 0
    for candidate in generate_alerts(db, spac_id=spac_id, now=now):
        existing = db.query(ComplianceAlert).filter(
            ComplianceAlert.spac_id == candidate.spac_id,
            ComplianceAlert.type == candidate.type,
            ComplianceAlert.title == candidate.title,
            ComplianceAlert.is_dismissed == False,
        ).first()
        if existing:
            continue

        db.add(ComplianceAlert(
            spac_id=candidate.spac_id,
            type=candidate.type,
            severity=candidate.severity,
            title=candidate.title,
            description=candidate.description,
            due_date=candidate.due_date,
        ))
        # Flush so a duplicate candidate later in the same run is seen
        db.flush()
        created += 1

    db.commit()
    logger.info("alerts.synced", spac_id=spac_id, created=created)
    return created


def cleanup_dismissed_alerts(db: Session, days_old: int = 30) -> int:
    """Delete dismissed alerts last touched more than days_old days ago."""
    cutoff = datetime.utcnow() - timedelta(days=days_old)
    deleted = db.query(ComplianceAlert).filter(
        ComplianceAlert.is_dismissed == True,
        ComplianceAlert.updated_at < cutoff,
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("alerts.cleaned_up", deleted=deleted, days_old=days_old)
    return deleted
