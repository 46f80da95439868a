"""Compliance alerts raised from SPAC deadlines, filings and SEC comments."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Boolean, Index, Enum as SQLEnum

from spacos.db.base import Base


class ComplianceAlertType(str, Enum):
    """Types of compliance alerts."""
    DEADLINE_APPROACHING = "DEADLINE_APPROACHING"
    DEADLINE_CRITICAL = "DEADLINE_CRITICAL"
    DEADLINE_MISSED = "DEADLINE_MISSED"
    FILING_REQUIRED = "FILING_REQUIRED"
    COMPLIANCE_WARNING = "COMPLIANCE_WARNING"


class AlertSeverity(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class ComplianceAlert(Base):
    """
    Alert surfaced to the deal team about an upcoming or missed obligation.

    Alerts are never hard-deleted from the UI flow: dismissing hides them
    and a dismissed alert does not block regeneration of the same alert.
    """
    __tablename__ = "compliance_alerts"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), index=True)
    type = Column(SQLEnum(ComplianceAlertType), nullable=False, index=True)
    severity = Column(SQLEnum(AlertSeverity), default=AlertSeverity.medium, nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    due_date = Column(DateTime)

    # Status
    is_read = Column(Boolean, default=False, nullable=False)
    is_dismissed = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime)
    dismissed_at = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_compliance_alerts_open", "is_dismissed", "is_read"),
    )
