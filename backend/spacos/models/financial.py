"""Cap table and trust account models."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Numeric, BigInteger, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base, JSONType


class HolderType(str, Enum):
    PUBLIC = "PUBLIC"
    SPONSOR = "SPONSOR"
    FOUNDER = "FOUNDER"
    PIPE = "PIPE"
    TARGET_SHAREHOLDER = "TARGET_SHAREHOLDER"
    EARNOUT = "EARNOUT"
    WARRANT_PUBLIC = "WARRANT_PUBLIC"
    WARRANT_PRIVATE = "WARRANT_PRIVATE"
    EQUITY_INCENTIVE = "EQUITY_INCENTIVE"
    CONVERTIBLE = "CONVERTIBLE"
    OTHER = "OTHER"


class CapTableEntry(Base):
    """One holder's position in one share class."""
    __tablename__ = "cap_table_entries"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)
    holder_name = Column(String(255), nullable=False)
    holder_type = Column(SQLEnum(HolderType), nullable=False)
    share_class = Column(String(50), nullable=False, default="Class A")
    shares_owned = Column(BigInteger, nullable=False, default=0)
    ownership_pct = Column(Numeric(9, 4))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    spac = relationship("Spac", back_populates="cap_table_entries")


class TrustAccount(Base):
    """
    Trust account held for public shareholders.

    balance_history is an append-only list of
    {"date": iso-date, "balance": float, "note": str}.
    """
    __tablename__ = "trust_accounts"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), nullable=False, index=True)
    bank_name = Column(String(255))
    current_balance = Column(Numeric(18, 2), nullable=False, default=0)
    per_share_value = Column(Numeric(10, 4))
    accrued_interest = Column(Numeric(18, 2), default=0)
    balance_date = Column(DateTime, default=datetime.utcnow)
    balance_history = Column(JSONType)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    spac = relationship("Spac", back_populates="trust_accounts")
