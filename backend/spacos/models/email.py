"""Recorded e-mail messages linked to CRM contacts."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index, Enum as SQLEnum

from spacos.db.base import Base, JSONType


class EmailDirection(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class Email(Base):
    __tablename__ = "emails"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), index=True)
    thread_id = Column(String(255), index=True)
    direction = Column(SQLEnum(EmailDirection), nullable=False)

    from_address = Column(String(255), nullable=False)
    to_addresses = Column(JSONType)  # ["a@x.com", "b@y.com"]
    subject = Column(String(1000))
    snippet = Column(String(500))
    body = Column(Text)
    labels = Column(JSONType)

    is_read = Column(Boolean, default=False, nullable=False)
    is_starred = Column(Boolean, default=False, nullable=False)
    sent_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_emails_sent_at", "sent_at"),
    )
