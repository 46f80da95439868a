"""Pydantic schemas for Contact and Interaction APIs."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.contact import ContactType, ContactStatus, RelationshipStrength, InteractionType

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class ContactBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = None
    title: Optional[str] = None
    linkedin_url: Optional[str] = None
    company_id: Optional[int] = None
    type: ContactType = ContactType.OTHER
    status: ContactStatus = ContactStatus.ACTIVE
    relationship_score: int = Field(0, ge=0, le=100)
    relationship_strength: Optional[RelationshipStrength] = None
    is_starred: bool = False
    tags: list[str] = []
    notes: Optional[str] = None
    next_follow_up_at: Optional[datetime] = None


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = None
    title: Optional[str] = None
    linkedin_url: Optional[str] = None
    company_id: Optional[int] = None
    type: Optional[ContactType] = None
    relationship_strength: Optional[RelationshipStrength] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    next_follow_up_at: Optional[datetime] = None


class ContactResponse(ContactBase):
    id: int
    full_name: str
    relationship_score: Optional[int] = None
    tags: Optional[list[str]] = None
    last_interaction_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScoreRequest(BaseModel):
    relationship_score: int = Field(..., ge=0, le=100)


class ContactStatusRequest(BaseModel):
    status: ContactStatus


class LinkTargetRequest(BaseModel):
    target_id: int
    role: Optional[str] = None
    is_primary: bool = False


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class ContactStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    starred: int
    average_relationship_score: Optional[float] = None


class InteractionBase(BaseModel):
    type: InteractionType
    subject: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, le=10080)
    outcome: Optional[str] = None


class InteractionCreate(InteractionBase):
    contact_id: int


class InteractionUpdate(BaseModel):
    type: Optional[InteractionType] = None
    subject: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, le=10080)
    outcome: Optional[str] = None


class InteractionResponse(InteractionBase):
    id: int
    contact_id: int
    date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ContactInteractionStats(BaseModel):
    contact_id: int
    total: int
    by_type: dict[str, int]
    last_interaction: Optional[datetime] = None
    first_interaction: Optional[datetime] = None
    this_month: int
    average_per_month: float
