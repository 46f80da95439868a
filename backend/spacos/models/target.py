"""Acquisition target models with scoring history and contact links."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, Float, Boolean, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base, JSONType


class TargetStatus(str, Enum):
    """Pipeline position of an acquisition target."""
    IDENTIFIED = "IDENTIFIED"
    PRELIMINARY = "PRELIMINARY"
    INITIAL_OUTREACH = "INITIAL_OUTREACH"
    NDA_SIGNED = "NDA_SIGNED"
    DUE_DILIGENCE = "DUE_DILIGENCE"
    TERM_SHEET = "TERM_SHEET"
    LOI = "LOI"
    LOI_SUBMITTED = "LOI_SUBMITTED"
    NEGOTIATION = "NEGOTIATION"
    DEFINITIVE = "DEFINITIVE"
    CLOSED = "CLOSED"
    PASSED = "PASSED"
    TERMINATED = "TERMINATED"


class DealStage(str, Enum):
    ORIGINATION = "ORIGINATION"
    SCREENING = "SCREENING"
    EVALUATION = "EVALUATION"
    DILIGENCE = "DILIGENCE"
    EXECUTION = "EXECUTION"
    CLOSING = "CLOSING"


class Target(Base):
    """
    A candidate acquisition company tracked through the deal pipeline.

    Scores are 1-10 per dimension; overall_score is their mean.
    ai_score is 0-100 and every change is appended to ScoreHistory.
    """
    __tablename__ = "targets"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    industry = Column(String(100), index=True)
    sector = Column(String(100))
    headquarters = Column(String(255))
    website = Column(String(500))

    # Pipeline
    status = Column(SQLEnum(TargetStatus), default=TargetStatus.IDENTIFIED, nullable=False)
    stage = Column(SQLEnum(DealStage), default=DealStage.ORIGINATION, nullable=False)
    priority = Column(Integer, default=3, nullable=False)  # 1 = highest
    probability = Column(Integer, default=0)  # 0-100

    # Valuation
    enterprise_value = Column(Numeric(18, 2))
    equity_value = Column(Numeric(18, 2))
    revenue = Column(Numeric(18, 2))
    ebitda = Column(Numeric(18, 2))
    ev_revenue = Column(Numeric(10, 2))
    ev_ebitda = Column(Numeric(10, 2))

    # Scores
    management_score = Column(Integer)
    market_score = Column(Integer)
    financial_score = Column(Integer)
    operational_score = Column(Integer)
    risk_score = Column(Integer)
    overall_score = Column(Float)
    ai_score = Column(Float)

    # Milestone dates
    nda_signed_date = Column(DateTime)
    loi_signed_date = Column(DateTime)
    da_signed_date = Column(DateTime)
    expected_close_date = Column(DateTime)
    actual_close_date = Column(DateTime)

    key_risks = Column(JSONType)
    key_opportunities = Column(JSONType)
    tags = Column(JSONType)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    # Relationships
    spac = relationship("Spac", back_populates="targets")
    contacts = relationship("TargetContact", back_populates="target", cascade="all, delete-orphan")
    score_history = relationship(
        "ScoreHistory", back_populates="target", cascade="all, delete-orphan",
        order_by="ScoreHistory.recorded_at",
    )
    tasks = relationship("Task", back_populates="target")

    __table_args__ = (
        Index("ix_targets_status", "status"),
        Index("ix_targets_spac_status", "spac_id", "status"),
    )


class TargetContact(Base):
    """Link between a target and a CRM contact."""
    __tablename__ = "target_contacts"

    id = Column(Integer, primary_key=True, index=True)
    target_id = Column(Integer, ForeignKey("targets.id"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
    role = Column(String(100))
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    target = relationship("Target", back_populates="contacts")
    contact = relationship("Contact", back_populates="target_links")

    __table_args__ = (
        UniqueConstraint("target_id", "contact_id", name="uq_target_contact"),
    )


class ScoreHistory(Base):
    """Point-in-time AI score for a target."""
    __tablename__ = "score_history"

    id = Column(Integer, primary_key=True, index=True)
    target_id = Column(Integer, ForeignKey("targets.id"), nullable=False, index=True)
    ai_score = Column(Float, nullable=False)
    financial_score = Column(Float)
    market_score = Column(Float)
    management_score = Column(Float)
    thesis = Column(Text)
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    target = relationship("Target", back_populates="score_history")
