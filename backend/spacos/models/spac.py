"""SPAC model with lifecycle status and trust/deadline tracking."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, BigInteger, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base, JSONType


class SpacStatus(str, Enum):
    """SPAC lifecycle states."""
    SEARCHING = "SEARCHING"
    LOI_SIGNED = "LOI_SIGNED"
    DA_ANNOUNCED = "DA_ANNOUNCED"
    SEC_REVIEW = "SEC_REVIEW"
    SHAREHOLDER_VOTE = "SHAREHOLDER_VOTE"
    CLOSING = "CLOSING"
    COMPLETED = "COMPLETED"
    LIQUIDATING = "LIQUIDATING"
    LIQUIDATED = "LIQUIDATED"
    TERMINATED = "TERMINATED"


class SpacPhase(str, Enum):
    FORMATION = "FORMATION"
    IPO = "IPO"
    TARGET_SEARCH = "TARGET_SEARCH"
    NEGOTIATION = "NEGOTIATION"
    DE_SPAC = "DE_SPAC"
    POST_MERGER = "POST_MERGER"


class Spac(Base):
    """
    A special-purpose acquisition company.

    Key requirements:
    - Ticker is unique across all SPACs, including soft-deleted ones
    - extension_deadline supersedes deadline_date once an extension is used
    - Soft delete via deleted_at
    """
    __tablename__ = "spacs"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True)

    name = Column(String(255), nullable=False)
    ticker = Column(String(20), unique=True, nullable=False, index=True)
    cik = Column(String(10), index=True)
    status = Column(SQLEnum(SpacStatus), default=SpacStatus.SEARCHING, nullable=False)
    phase = Column(SQLEnum(SpacPhase), default=SpacPhase.FORMATION, nullable=False)
    description = Column(Text)

    # IPO and trust
    ipo_date = Column(DateTime)
    ipo_size = Column(Numeric(18, 2))
    trust_amount = Column(Numeric(18, 2))
    trust_balance = Column(Numeric(18, 2))
    shares_outstanding = Column(BigInteger)

    # Deadlines
    deadline_date = Column(DateTime)
    extension_deadline = Column(DateTime)
    extensions_used = Column(Integer, default=0, nullable=False)
    max_extensions = Column(Integer, default=2, nullable=False)

    # Business combination milestones
    da_announced_date = Column(DateTime)
    vote_date = Column(DateTime)
    closing_date = Column(DateTime)

    target_sectors = Column(JSONType)  # ["fintech", "healthcare"]
    tags = Column(JSONType)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    # Relationships
    organization = relationship("Organization", back_populates="spacs")
    targets = relationship("Target", back_populates="spac")
    filings = relationship("Filing", back_populates="spac")
    tasks = relationship("Task", back_populates="spac")
    cap_table_entries = relationship("CapTableEntry", back_populates="spac", cascade="all, delete-orphan")
    trust_accounts = relationship("TrustAccount", back_populates="spac", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_spacs_status", "status"),
        Index("ix_spacs_deadline", "deadline_date"),
    )

    @property
    def effective_deadline(self):
        return self.extension_deadline or self.deadline_date
