"""SEC filing and SEC comment letter models."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class FilingType(str, Enum):
    S1 = "S1"
    S4 = "S4"
    DEF14A = "DEF14A"
    PREM14A = "PREM14A"
    DEFA14A = "DEFA14A"
    FORM_8K = "FORM_8K"
    FORM_10K = "FORM_10K"
    FORM_10Q = "FORM_10Q"
    FORM_425 = "FORM_425"
    SC_13D = "SC_13D"
    SC_13G = "SC_13G"
    FORM_3 = "FORM_3"
    FORM_4 = "FORM_4"
    FORM_5 = "FORM_5"
    OTHER = "OTHER"


class FilingStatus(str, Enum):
    """Filing workflow states, from internal drafting through SEC effectiveness."""
    DRAFTING = "DRAFTING"
    INTERNAL_REVIEW = "INTERNAL_REVIEW"
    LEGAL_REVIEW = "LEGAL_REVIEW"
    BOARD_APPROVAL = "BOARD_APPROVAL"
    FILED = "FILED"
    SEC_COMMENT = "SEC_COMMENT"
    RESPONSE_FILED = "RESPONSE_FILED"
    AMENDED = "AMENDED"
    EFFECTIVE = "EFFECTIVE"
    WITHDRAWN = "WITHDRAWN"


class Filing(Base):
    """
    An SEC filing prepared for or made by a SPAC.

    Amendments point at their original through parent_filing_id and are
    numbered 1, 2, ... per parent.
    """
    __tablename__ = "filings"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)

    type = Column(SQLEnum(FilingType), nullable=False)
    status = Column(SQLEnum(FilingStatus), default=FilingStatus.DRAFTING, nullable=False)
    title = Column(String(500))
    description = Column(Text)

    # SEC identifiers
    cik = Column(String(10), index=True)
    accession_number = Column(String(25), unique=True, index=True)
    file_number = Column(String(50))
    edgar_url = Column(String(1000))

    # Dates
    due_date = Column(DateTime)
    filed_date = Column(DateTime)
    effective_date = Column(DateTime)

    # Amendments
    amendment_number = Column(Integer, default=0, nullable=False)
    parent_filing_id = Column(Integer, ForeignKey("filings.id"))

    # SEC review
    sec_comment_count = Column(Integer, default=0, nullable=False)
    sec_comment_date = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    spac = relationship("Spac", back_populates="filings")
    parent_filing = relationship("Filing", remote_side=[id], back_populates="amendments")
    amendments = relationship("Filing", back_populates="parent_filing", order_by="Filing.amendment_number")
    sec_comments = relationship("SecComment", back_populates="filing", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="filing")

    __table_args__ = (
        Index("ix_filings_spac_status", "spac_id", "status"),
        Index("ix_filings_filed_date", "filed_date"),
    )


class SecComment(Base):
    """A numbered comment from an SEC comment letter and our response."""
    __tablename__ = "sec_comments"

    id = Column(Integer, primary_key=True, index=True)
    filing_id = Column(Integer, ForeignKey("filings.id"), nullable=False, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)

    comment_number = Column(Integer, nullable=False)
    comment_text = Column(Text, nullable=False)
    category = Column(String(100))
    received_date = Column(DateTime, default=datetime.utcnow)
    due_date = Column(DateTime)

    response_text = Column(Text)
    response_date = Column(DateTime)
    is_resolved = Column(Boolean, default=False, nullable=False)
    resolved_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    filing = relationship("Filing", back_populates="sec_comments")
