"""Pydantic schemas for OwnershipStake API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.organization import OrganizationType
from spacos.models.ownership import StakeType, ExitStatus


class StakeBase(BaseModel):
    ownership_pct: float = Field(..., ge=0, le=100)
    stake_type: StakeType
    investment_date: Optional[datetime] = None
    entry_valuation: Optional[float] = Field(None, ge=0)
    entry_multiple: Optional[float] = Field(None, ge=0)
    board_seats: int = Field(0, ge=0)
    exit_window: Optional[str] = None
    estimated_hold_years: Optional[int] = Field(None, ge=0)
    exit_status: ExitStatus = ExitStatus.ACTIVE
    exit_date: Optional[datetime] = None
    exit_valuation: Optional[float] = Field(None, ge=0)
    exit_multiple: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class StakeCreate(StakeBase):
    owner_id: int
    owned_id: int


class StakeUpdate(BaseModel):
    ownership_pct: Optional[float] = Field(None, ge=0, le=100)
    stake_type: Optional[StakeType] = None
    investment_date: Optional[datetime] = None
    entry_valuation: Optional[float] = Field(None, ge=0)
    entry_multiple: Optional[float] = Field(None, ge=0)
    board_seats: Optional[int] = Field(None, ge=0)
    exit_window: Optional[str] = None
    estimated_hold_years: Optional[int] = Field(None, ge=0)
    exit_status: Optional[ExitStatus] = None
    exit_date: Optional[datetime] = None
    exit_valuation: Optional[float] = Field(None, ge=0)
    exit_multiple: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class StakeOrganization(BaseModel):
    id: int
    name: str
    type: OrganizationType

    class Config:
        from_attributes = True


class StakeResponse(StakeBase):
    id: int
    owner_id: int
    owned_id: int
    owner: Optional[StakeOrganization] = None
    owned: Optional[StakeOrganization] = None
    board_seats: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
