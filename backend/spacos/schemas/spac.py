"""Pydantic schemas for SPAC API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.spac import SpacStatus, SpacPhase


class SpacBase(BaseModel):
    """Base SPAC schema."""
    name: str = Field(..., min_length=1, max_length=255)
    ticker: str = Field(..., min_length=1, max_length=20)
    organization_id: Optional[int] = None
    cik: Optional[str] = Field(None, max_length=10)
    phase: SpacPhase = SpacPhase.FORMATION
    description: Optional[str] = None
    ipo_date: Optional[datetime] = None
    ipo_size: Optional[float] = Field(None, ge=0)
    trust_amount: Optional[float] = Field(None, ge=0)
    trust_balance: Optional[float] = Field(None, ge=0)
    shares_outstanding: Optional[int] = Field(None, ge=0)
    deadline_date: Optional[datetime] = None
    max_extensions: int = Field(2, ge=0)
    da_announced_date: Optional[datetime] = None
    vote_date: Optional[datetime] = None
    closing_date: Optional[datetime] = None
    target_sectors: list[str] = []
    tags: list[str] = []


class SpacCreate(SpacBase):
    status: SpacStatus = SpacStatus.SEARCHING


class SpacUpdate(BaseModel):
    """Partial update. Status changes go through the status endpoint."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    ticker: Optional[str] = Field(None, min_length=1, max_length=20)
    organization_id: Optional[int] = None
    cik: Optional[str] = Field(None, max_length=10)
    phase: Optional[SpacPhase] = None
    description: Optional[str] = None
    ipo_date: Optional[datetime] = None
    ipo_size: Optional[float] = Field(None, ge=0)
    trust_amount: Optional[float] = Field(None, ge=0)
    trust_balance: Optional[float] = Field(None, ge=0)
    shares_outstanding: Optional[int] = Field(None, ge=0)
    deadline_date: Optional[datetime] = None
    max_extensions: Optional[int] = Field(None, ge=0)
    da_announced_date: Optional[datetime] = None
    vote_date: Optional[datetime] = None
    closing_date: Optional[datetime] = None
    target_sectors: Optional[list[str]] = None
    tags: Optional[list[str]] = None


class SpacResponse(SpacBase):
    """Schema for SPAC response."""
    id: int
    status: SpacStatus
    extension_deadline: Optional[datetime] = None
    extensions_used: int
    target_sectors: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SpacSummary(BaseModel):
    """Summary schema for pipeline and deadline lists."""
    id: int
    name: str
    ticker: str
    status: SpacStatus
    phase: SpacPhase
    trust_balance: Optional[float] = None
    deadline_date: Optional[datetime] = None
    extension_deadline: Optional[datetime] = None

    class Config:
        from_attributes = True


class StatusUpdateRequest(BaseModel):
    status: SpacStatus


class ExtendDeadlineRequest(BaseModel):
    months: int = Field(1, ge=1, le=12)
    contribution_amount: Optional[float] = Field(None, gt=0)


class TimelineEvent(BaseModel):
    type: str
    title: str
    date: Optional[datetime] = None
    status: str  # past, future


class SpacStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    by_phase: dict[str, int]
    average_ipo_size: Optional[float] = None
    total_ipo_size: float
    average_trust_balance: Optional[float] = None
    total_trust_balance: float
    created_last_30_days: int


class PipelineColumn(BaseModel):
    status: SpacStatus
    count: int
    spacs: list[dict]
