"""Organization model: the tenant or firm that owns SPACs, mandates and stakes."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class OrganizationType(str, Enum):
    SPAC_SPONSOR = "SPAC_SPONSOR"
    IB = "IB"
    PE_FIRM = "PE_FIRM"
    TARGET_COMPANY = "TARGET_COMPANY"
    LAW_FIRM = "LAW_FIRM"
    OTHER = "OTHER"


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    type = Column(SQLEnum(OrganizationType), default=OrganizationType.OTHER, nullable=False)
    industry = Column(String(100))
    website = Column(String(500))
    headquarters = Column(String(255))
    description = Column(Text)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    spacs = relationship("Spac", back_populates="organization")
    mandates = relationship("Mandate", back_populates="organization", cascade="all, delete-orphan")
