"""Pydantic schemas for Meeting API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from spacos.models.meeting import AttendeeStatus


class AttendeeIn(BaseModel):
    contact_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    status: AttendeeStatus = AttendeeStatus.PENDING

    @model_validator(mode="after")
    def require_contact_or_email(self):
        if self.contact_id is None and not self.email:
            raise ValueError("Attendee needs a contact_id or an email")
        return self


class AttendeeResponse(BaseModel):
    id: int
    meeting_id: int
    contact_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    status: AttendeeStatus

    class Config:
        from_attributes = True


class MeetingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    meeting_url: Optional[str] = None
    spac_id: Optional[int] = None
    target_id: Optional[int] = None


class MeetingCreate(MeetingBase):
    attendees: list[AttendeeIn] = []


class MeetingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    meeting_url: Optional[str] = None
    spac_id: Optional[int] = None
    target_id: Optional[int] = None


class MeetingResponse(MeetingBase):
    id: int
    attendees: list[AttendeeResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class AttendeeStatusRequest(BaseModel):
    status: AttendeeStatus
