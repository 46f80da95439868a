"""Calendar meetings and their attendees."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base


class AttendeeStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    TENTATIVE = "TENTATIVE"


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    location = Column(String(500))
    meeting_url = Column(String(1000))

    spac_id = Column(Integer, ForeignKey("spacs.id"), index=True)
    target_id = Column(Integer, ForeignKey("targets.id"), index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    attendees = relationship("MeetingAttendee", back_populates="meeting", cascade="all, delete-orphan")


class MeetingAttendee(Base):
    """An attendee is either a CRM contact or a bare e-mail address."""
    __tablename__ = "meeting_attendees"

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id"), nullable=False, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), index=True)
    email = Column(String(255))
    name = Column(String(255))
    status = Column(SQLEnum(AttendeeStatus), default=AttendeeStatus.PENDING, nullable=False)

    meeting = relationship("Meeting", back_populates="attendees")
