"""CRM company and company deal models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    industry = Column(String(100))
    website = Column(String(500))
    description = Column(Text)
    type = Column(String(50))  # e.g. "Investment Bank", "Law Firm"
    size = Column(String(50))  # e.g. "51-200"
    headquarters = Column(String(255))
    founded_year = Column(Integer)
    logo_url = Column(String(500))

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contacts = relationship("Contact", back_populates="company")
    deals = relationship("CompanyDeal", back_populates="company", cascade="all, delete-orphan")


class CompanyDeal(Base):
    """A historical or live deal a company participated in."""
    __tablename__ = "company_deals"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    deal_name = Column(String(255), nullable=False)
    role = Column(String(100))
    status = Column(String(50))
    value = Column(Numeric(18, 2))
    closed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    company = relationship("Company", back_populates="deals")
