"""Pydantic schemas for Organization API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.organization import OrganizationType


class OrganizationBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: OrganizationType = OrganizationType.OTHER
    industry: Optional[str] = None
    website: Optional[str] = None
    headquarters: Optional[str] = None
    description: Optional[str] = None


class OrganizationCreate(OrganizationBase):
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    type: Optional[OrganizationType] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    headquarters: Optional[str] = None
    description: Optional[str] = None


class OrganizationResponse(OrganizationBase):
    id: int
    slug: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
