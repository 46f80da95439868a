"""Pydantic schemas for Target API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from spacos.models.target import TargetStatus, DealStage


class TargetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    spac_id: Optional[int] = None
    organization_id: Optional[int] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    sector: Optional[str] = None
    headquarters: Optional[str] = None
    website: Optional[str] = None
    stage: DealStage = DealStage.ORIGINATION
    priority: int = Field(3, ge=1, le=5)
    probability: int = Field(0, ge=0, le=100)
    enterprise_value: Optional[float] = Field(None, ge=0)
    equity_value: Optional[float] = Field(None, ge=0)
    revenue: Optional[float] = None
    ebitda: Optional[float] = None
    ev_revenue: Optional[float] = None
    ev_ebitda: Optional[float] = None
    expected_close_date: Optional[datetime] = None
    key_risks: list[str] = []
    key_opportunities: list[str] = []
    tags: list[str] = []


class TargetCreate(TargetBase):
    status: TargetStatus = TargetStatus.IDENTIFIED


class TargetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    organization_id: Optional[int] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    sector: Optional[str] = None
    headquarters: Optional[str] = None
    website: Optional[str] = None
    stage: Optional[DealStage] = None
    priority: Optional[int] = Field(None, ge=1, le=5)
    probability: Optional[int] = Field(None, ge=0, le=100)
    enterprise_value: Optional[float] = Field(None, ge=0)
    equity_value: Optional[float] = Field(None, ge=0)
    revenue: Optional[float] = None
    ebitda: Optional[float] = None
    ev_revenue: Optional[float] = None
    ev_ebitda: Optional[float] = None
    expected_close_date: Optional[datetime] = None
    key_risks: Optional[list[str]] = None
    key_opportunities: Optional[list[str]] = None
    tags: Optional[list[str]] = None


class TargetResponse(TargetBase):
    id: int
    status: TargetStatus
    management_score: Optional[int] = None
    market_score: Optional[int] = None
    financial_score: Optional[int] = None
    operational_score: Optional[int] = None
    risk_score: Optional[int] = None
    overall_score: Optional[float] = None
    ai_score: Optional[float] = None
    nda_signed_date: Optional[datetime] = None
    loi_signed_date: Optional[datetime] = None
    da_signed_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None
    key_risks: Optional[list[str]] = None
    key_opportunities: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TargetStatusRequest(BaseModel):
    status: TargetStatus


class AssignSpacRequest(BaseModel):
    spac_id: int


class ScoresRequest(BaseModel):
    """Any subset of dimension scores, each 1-10."""
    management_score: Optional[int] = Field(None, ge=1, le=10)
    market_score: Optional[int] = Field(None, ge=1, le=10)
    financial_score: Optional[int] = Field(None, ge=1, le=10)
    operational_score: Optional[int] = Field(None, ge=1, le=10)
    risk_score: Optional[int] = Field(None, ge=1, le=10)

    @model_validator(mode="after")
    def require_one_score(self):
        if all(v is None for v in self.model_dump().values()):
            raise ValueError("At least one score is required")
        return self


class AiScoreRequest(BaseModel):
    ai_score: float = Field(..., ge=0, le=100)
    financial_score: Optional[float] = Field(None, ge=0, le=100)
    market_score: Optional[float] = Field(None, ge=0, le=100)
    management_score: Optional[float] = Field(None, ge=0, le=100)
    thesis: Optional[str] = None


class ScoreHistoryResponse(BaseModel):
    id: int
    target_id: int
    ai_score: float
    financial_score: Optional[float] = None
    market_score: Optional[float] = None
    management_score: Optional[float] = None
    thesis: Optional[str] = None
    recorded_at: datetime

    class Config:
        from_attributes = True


class ScoreTrend(BaseModel):
    target_id: int
    current_score: Optional[float] = None
    previous_score: Optional[float] = None
    change: Optional[float] = None
    change_pct: Optional[float] = None
    trend: str  # improving, declining, stable, new
    score_count: int = 0
    average_score: Optional[float] = None


class ContactLink(BaseModel):
    contact_id: int
    role: Optional[str] = None
    is_primary: bool = False


class ManageContactsRequest(BaseModel):
    add: list[ContactLink] = []
    remove: list[int] = []


class TargetContactResponse(BaseModel):
    id: int
    target_id: int
    contact_id: int
    role: Optional[str] = None
    is_primary: bool

    class Config:
        from_attributes = True


class DueDiligenceStatus(BaseModel):
    target_id: int
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    completion_rate: float


class ValuationComparison(BaseModel):
    target_id: int
    industry: Optional[str] = None
    comparable_count: int
    target_ev_revenue: Optional[float] = None
    target_ev_ebitda: Optional[float] = None
    average_ev_revenue: Optional[float] = None
    average_ev_ebitda: Optional[float] = None
    ev_revenue_premium_pct: Optional[float] = None
    ev_ebitda_premium_pct: Optional[float] = None
    comparables: list[dict]


class TargetStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    by_stage: dict[str, int]
    top_industries: list[dict]
    average_enterprise_value: Optional[float] = None
    average_ev_revenue: Optional[float] = None
    average_ev_ebitda: Optional[float] = None
    conversion_rate: float
