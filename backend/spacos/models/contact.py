"""CRM contact and interaction models."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base, JSONType


class ContactType(str, Enum):
    INVESTOR = "INVESTOR"
    ADVISOR = "ADVISOR"
    LEGAL = "LEGAL"
    BANKER = "BANKER"
    TARGET_EXEC = "TARGET_EXEC"
    BOARD_MEMBER = "BOARD_MEMBER"
    SPONSOR = "SPONSOR"
    UNDERWRITER = "UNDERWRITER"
    AUDITOR = "AUDITOR"
    OTHER = "OTHER"


class ContactStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"
    PROSPECT = "PROSPECT"
    LEAD = "LEAD"


class RelationshipStrength(str, Enum):
    COLD = "COLD"
    WARM = "WARM"
    HOT = "HOT"
    ADVOCATE = "ADVOCATE"


class InteractionType(str, Enum):
    EMAIL = "EMAIL"
    CALL = "CALL"
    MEETING = "MEETING"
    NOTE = "NOTE"
    TASK = "TASK"
    LINKEDIN = "LINKEDIN"
    OTHER = "OTHER"


class Contact(Base):
    """
    A person in the deal team's network.

    relationship_score is 0-100. last_interaction_at is maintained
    whenever an interaction is logged against the contact.
    """
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True)
    phone = Column(String(50))
    title = Column(String(255))
    linkedin_url = Column(String(500))

    type = Column(SQLEnum(ContactType), default=ContactType.OTHER, nullable=False)
    status = Column(SQLEnum(ContactStatus), default=ContactStatus.ACTIVE, nullable=False)
    relationship_score = Column(Integer, default=0)
    relationship_strength = Column(SQLEnum(RelationshipStrength))
    is_starred = Column(Boolean, default=False, nullable=False)
    tags = Column(JSONType)
    notes = Column(Text)

    last_interaction_at = Column(DateTime)
    next_follow_up_at = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    company = relationship("Company", back_populates="contacts")
    interactions = relationship("Interaction", back_populates="contact", cascade="all, delete-orphan")
    target_links = relationship("TargetContact", back_populates="contact", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_contacts_name", "last_name", "first_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Interaction(Base):
    """A logged touchpoint with a contact."""
    __tablename__ = "interactions"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    type = Column(SQLEnum(InteractionType), nullable=False)
    subject = Column(String(500))
    description = Column(Text)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    duration = Column(Integer)  # minutes
    outcome = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contact = relationship("Contact", back_populates="interactions")
