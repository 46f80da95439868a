"""
Compliance records kept per SPAC.

ComplianceItem is the checklist of recurring obligations (10-K, exchange
listing rules, tax). BoardMeeting holds board and committee meetings with
their resolutions. Conflict is the conflict-of-interest log. InsiderTradingWindow
records open, closed and blackout trading periods for insiders.
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base, JSONType


class ComplianceStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"
    WAIVED = "WAIVED"


OPEN_COMPLIANCE_STATUSES = (ComplianceStatus.PENDING, ComplianceStatus.IN_PROGRESS)


class BoardMeetingStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ConflictSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TradingWindowStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    BLACKOUT = "BLACKOUT"


class ComplianceItem(Base):
    __tablename__ = "compliance_items"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)

    name = Column(String(500), nullable=False)
    description = Column(Text)
    category = Column(String(100))  # e.g. "SEC", "Exchange", "Corporate", "Tax"
    status = Column(SQLEnum(ComplianceStatus), default=ComplianceStatus.PENDING, nullable=False)
    due_date = Column(DateTime)
    completed_date = Column(DateTime)
    assigned_to = Column(String(255))
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    spac = relationship("Spac")

    __table_args__ = (
        Index("ix_compliance_items_status_due", "status", "due_date"),
    )


class BoardMeeting(Base):
    __tablename__ = "board_meetings"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    type = Column(String(50))  # regular, special, annual, committee
    status = Column(SQLEnum(BoardMeetingStatus), default=BoardMeetingStatus.SCHEDULED, nullable=False)
    scheduled_date = Column(DateTime, nullable=False, index=True)
    actual_date = Column(DateTime)
    location = Column(String(500))
    quorum_met = Column(Boolean)
    agenda = Column(JSONType)  # list of agenda items
    resolutions = Column(JSONType)  # list of {number, title, votes_for, ..., passed}
    minutes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    spac = relationship("Spac")


class Conflict(Base):
    __tablename__ = "conflicts"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text)
    party_name = Column(String(255))
    relationship_type = Column(String(255))
    severity = Column(SQLEnum(ConflictSeverity), default=ConflictSeverity.MEDIUM, nullable=False)

    is_resolved = Column(Boolean, default=False, nullable=False)
    resolution = Column(Text)
    resolved_date = Column(DateTime)
    disclosed_in = Column(String(255))  # e.g. "S-4", "DEF 14A"
    disclosed_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    spac = relationship("Spac")


class InsiderTradingWindow(Base):
    __tablename__ = "insider_trading_windows"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)
    user_id = Column(String(100), index=True)  # single insider; null with affects_all

    status = Column(SQLEnum(TradingWindowStatus), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime)  # open-ended when null
    reason = Column(String(255))
    affects_all = Column(Boolean, default=False, nullable=False)
    affected_persons = Column(JSONType)  # list of {user_id, name, role}
    notification_sent = Column(Boolean, default=False, nullable=False)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    spac = relationship("Spac")

    __table_args__ = (
        Index("ix_trading_windows_spac_status", "spac_id", "status"),
    )
