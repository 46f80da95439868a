"""Pydantic schemas for Mandate API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.mandate import ServiceType, MandateStatus


class MandateBase(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=255)
    service_type: ServiceType
    status: MandateStatus = MandateStatus.ACTIVE
    deal_value: Optional[float] = Field(None, ge=0)
    expected_fee: Optional[float] = Field(None, ge=0)
    mandate_date: Optional[datetime] = None
    expected_close_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None
    description: Optional[str] = None
    notes: Optional[str] = None


class MandateCreate(MandateBase):
    organization_id: int
    contact_ids: list[int] = []


class MandateUpdate(BaseModel):
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    service_type: Optional[ServiceType] = None
    status: Optional[MandateStatus] = None
    deal_value: Optional[float] = Field(None, ge=0)
    expected_fee: Optional[float] = Field(None, ge=0)
    mandate_date: Optional[datetime] = None
    expected_close_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    contact_ids: Optional[list[int]] = None


class MandateContact(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    title: Optional[str] = None

    class Config:
        from_attributes = True


class MandateResponse(MandateBase):
    id: int
    organization_id: int
    contacts: list[MandateContact] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MandateList(BaseModel):
    items: list[MandateResponse]
    next_cursor: Optional[int] = None


class OrganizationMandates(BaseModel):
    organization_id: int
    mandates: list[MandateResponse]
    by_status: dict[str, int]
    total_deal_value: float
