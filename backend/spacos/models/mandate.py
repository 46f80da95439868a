"""Investment-bank mandate model."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, Table, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class ServiceType(str, Enum):
    MA_SELLSIDE = "MA_SELLSIDE"
    MA_BUYSIDE = "MA_BUYSIDE"
    CAPITAL_RAISE = "CAPITAL_RAISE"
    RESTRUCTURING = "RESTRUCTURING"
    FAIRNESS_OPINION = "FAIRNESS_OPINION"
    SPAC_ADVISORY = "SPAC_ADVISORY"
    OTHER = "OTHER"


class MandateStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WON = "WON"
    LOST = "LOST"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


mandate_contacts = Table(
    "mandate_contacts",
    Base.metadata,
    Column("mandate_id", Integer, ForeignKey("mandates.id", ondelete="CASCADE"), primary_key=True),
    Column("contact_id", Integer, ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True),
)


class Mandate(Base):
    """An advisory engagement won or pitched by an investment bank organization."""
    __tablename__ = "mandates"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    client_name = Column(String(255), nullable=False)
    service_type = Column(SQLEnum(ServiceType), nullable=False)
    status = Column(SQLEnum(MandateStatus), default=MandateStatus.ACTIVE, nullable=False)

    deal_value = Column(Numeric(18, 2))
    expected_fee = Column(Numeric(18, 2))
    mandate_date = Column(DateTime)
    expected_close_date = Column(DateTime)
    actual_close_date = Column(DateTime)

    description = Column(Text)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization", back_populates="mandates")
    contacts = relationship("Contact", secondary=mandate_contacts)
