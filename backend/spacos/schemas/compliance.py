"""Pydantic schemas for the compliance API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.compliance import (
    ComplianceStatus, BoardMeetingStatus, ConflictSeverity, TradingWindowStatus,
)


# Checklist items

class ComplianceItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None


class ComplianceItemCreate(ComplianceItemBase):
    spac_id: int
    status: ComplianceStatus = ComplianceStatus.PENDING


class ComplianceItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None


class ComplianceItemResponse(ComplianceItemBase):
    id: int
    spac_id: int
    status: ComplianceStatus
    completed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ComplianceStatusRequest(BaseModel):
    status: ComplianceStatus


class ComplianceStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    by_category: dict[str, int]
    overdue: int


# Board meetings

class Resolution(BaseModel):
    number: int = Field(..., gt=0)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    votes_for: Optional[int] = Field(None, ge=0)
    votes_against: Optional[int] = Field(None, ge=0)
    abstentions: Optional[int] = Field(None, ge=0)
    passed: Optional[bool] = None


class BoardMeetingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    type: Optional[str] = Field(None, max_length=50)
    scheduled_date: datetime
    location: Optional[str] = None
    agenda: list[str] = []
    minutes: Optional[str] = None


class BoardMeetingCreate(BoardMeetingBase):
    spac_id: int


class BoardMeetingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    type: Optional[str] = Field(None, max_length=50)
    scheduled_date: Optional[datetime] = None
    location: Optional[str] = None
    agenda: Optional[list[str]] = None
    minutes: Optional[str] = None


class BoardMeetingResponse(BoardMeetingBase):
    id: int
    spac_id: int
    status: BoardMeetingStatus
    actual_date: Optional[datetime] = None
    quorum_met: Optional[bool] = None
    agenda: Optional[list[str]] = None
    resolutions: Optional[list[Resolution]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BoardMeetingStatusRequest(BaseModel):
    status: BoardMeetingStatus
    actual_date: Optional[datetime] = None
    quorum_met: Optional[bool] = None


# Conflicts of interest

class ConflictBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    party_name: Optional[str] = None
    relationship_type: Optional[str] = None
    severity: ConflictSeverity = ConflictSeverity.MEDIUM


class ConflictCreate(ConflictBase):
    spac_id: int


class ConflictUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    party_name: Optional[str] = None
    relationship_type: Optional[str] = None
    severity: Optional[ConflictSeverity] = None


class ConflictResponse(ConflictBase):
    id: int
    spac_id: int
    is_resolved: bool
    resolution: Optional[str] = None
    resolved_date: Optional[datetime] = None
    disclosed_in: Optional[str] = None
    disclosed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConflictResolveRequest(BaseModel):
    resolution: str = Field(..., min_length=1)
    disclosed_in: Optional[str] = None


# Insider trading windows

class AffectedPerson(BaseModel):
    user_id: Optional[str] = None
    name: str
    role: Optional[str] = None


class TradingWindowBase(BaseModel):
    user_id: Optional[str] = None
    status: TradingWindowStatus
    start_date: datetime
    end_date: Optional[datetime] = None
    reason: Optional[str] = Field(None, max_length=255)
    affects_all: bool = False
    affected_persons: list[AffectedPerson] = []
    notes: Optional[str] = None


class TradingWindowCreate(TradingWindowBase):
    spac_id: int


class TradingWindowUpdate(BaseModel):
    user_id: Optional[str] = None
    status: Optional[TradingWindowStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    reason: Optional[str] = Field(None, max_length=255)
    affects_all: Optional[bool] = None
    affected_persons: Optional[list[AffectedPerson]] = None
    notification_sent: Optional[bool] = None
    notes: Optional[str] = None


class TradingWindowResponse(TradingWindowBase):
    id: int
    spac_id: int
    affected_persons: Optional[list[AffectedPerson]] = None
    notification_sent: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CloseWindowRequest(BaseModel):
    end_date: Optional[datetime] = None


class CanTradeResponse(BaseModel):
    can_trade: bool
    active_blackouts: list[TradingWindowResponse]
