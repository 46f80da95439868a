"""Private-equity ownership stakes between organizations."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class StakeType(str, Enum):
    MAJORITY = "MAJORITY"
    MINORITY = "MINORITY"
    CONTROL = "CONTROL"
    GROWTH_EQUITY = "GROWTH_EQUITY"
    CO_INVEST = "CO_INVEST"


class ExitStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PARTIALLY_EXITED = "PARTIALLY_EXITED"
    FULLY_EXITED = "FULLY_EXITED"
    WRITTEN_OFF = "WRITTEN_OFF"


class OwnershipStake(Base):
    """
    owner_id holds ownership_pct (0-100) of owned_id.

    At most one stake exists per (owner, owned) pair.
    """
    __tablename__ = "ownership_stakes"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    owned_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    ownership_pct = Column(Numeric(7, 4), nullable=False)
    stake_type = Column(SQLEnum(StakeType), nullable=False)
    investment_date = Column(DateTime)
    entry_valuation = Column(Numeric(18, 2))
    entry_multiple = Column(Numeric(10, 2))
    board_seats = Column(Integer, default=0)

    # Exit planning
    exit_window = Column(String(50))  # e.g. "2026-2027"
    estimated_hold_years = Column(Integer)
    exit_status = Column(SQLEnum(ExitStatus), default=ExitStatus.ACTIVE, nullable=False)
    exit_date = Column(DateTime)
    exit_valuation = Column(Numeric(18, 2))
    exit_multiple = Column(Numeric(10, 2))

    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("Organization", foreign_keys=[owner_id])
    owned = relationship("Organization", foreign_keys=[owned_id])

    __table_args__ = (
        UniqueConstraint("owner_id", "owned_id", name="uq_ownership_owner_owned"),
    )
