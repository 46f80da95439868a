"""Pydantic schemas for recorded e-mail API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.email import EmailDirection


class EmailCreate(BaseModel):
    contact_id: Optional[int] = None
    thread_id: Optional[str] = None
    direction: EmailDirection
    from_address: str = Field(..., min_length=3, max_length=255)
    to_addresses: list[str] = Field(..., min_length=1)
    subject: Optional[str] = Field(None, max_length=1000)
    body: Optional[str] = None
    labels: list[str] = []
    sent_at: Optional[datetime] = None


class EmailResponse(BaseModel):
    id: int
    contact_id: Optional[int] = None
    thread_id: Optional[str] = None
    direction: EmailDirection
    from_address: str
    to_addresses: Optional[list[str]] = None
    subject: Optional[str] = None
    snippet: Optional[str] = None
    body: Optional[str] = None
    labels: Optional[list[str]] = None
    is_read: bool
    is_starred: bool
    sent_at: datetime

    class Config:
        from_attributes = True


class EmailIdsRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class LinkContactRequest(BaseModel):
    contact_id: Optional[int] = None


class EmailStatistics(BaseModel):
    total: int
    unread: int
    starred: int
    by_direction: dict[str, int]
    last_7_days: int
