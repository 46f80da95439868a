"""Pydantic schemas for cap table, trust account and dilution APIs."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.financial import HolderType
from spacos.services.dilution import DilutionSource


class CapTableEntryBase(BaseModel):
    holder_name: str = Field(..., min_length=1, max_length=255)
    holder_type: HolderType
    share_class: str = Field("Class A", min_length=1, max_length=50)
    shares_owned: int = Field(..., ge=0)
    ownership_pct: Optional[float] = Field(None, ge=0, le=100)


class CapTableEntryCreate(CapTableEntryBase):
    pass


class CapTableEntryUpdate(BaseModel):
    holder_name: Optional[str] = Field(None, min_length=1, max_length=255)
    holder_type: Optional[HolderType] = None
    share_class: Optional[str] = Field(None, min_length=1, max_length=50)
    shares_owned: Optional[int] = Field(None, ge=0)
    ownership_pct: Optional[float] = Field(None, ge=0, le=100)


class CapTableEntryResponse(CapTableEntryBase):
    id: int
    spac_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class CapTableGroup(BaseModel):
    total_shares: str
    total_ownership: float
    count: int


class CapTableSummary(BaseModel):
    spac_id: int
    total_shares: str
    holder_count: int
    by_share_class: dict[str, CapTableGroup]
    by_holder_type: dict[str, CapTableGroup]


class TrustBalanceRequest(BaseModel):
    balance: float = Field(..., ge=0)
    per_share_value: Optional[float] = Field(None, ge=0)
    accrued_interest: Optional[float] = Field(None, ge=0)
    bank_name: Optional[str] = None
    balance_date: Optional[datetime] = None
    note: Optional[str] = None


class TrustAccountResponse(BaseModel):
    id: int
    spac_id: int
    bank_name: Optional[str] = None
    current_balance: float
    per_share_value: Optional[float] = None
    accrued_interest: Optional[float] = None
    balance_date: Optional[datetime] = None
    balance_history: Optional[list[dict]] = None

    class Config:
        from_attributes = True


class DilutionItemIn(BaseModel):
    source: DilutionSource
    label: str
    shares: float = Field(..., ge=0)
    percentage: Optional[float] = None
    is_negative: bool = False


class DilutionScenarioIn(BaseModel):
    name: str
    items: list[DilutionItemIn] = []


class WaterfallRequest(BaseModel):
    items: list[DilutionItemIn] = Field(..., min_length=1)
    total_shares: Optional[float] = Field(None, gt=0)
    scenarios: list[DilutionScenarioIn] = []
    scenario: Optional[str] = None


class WaterfallRowOut(BaseModel):
    source: DilutionSource
    label: str
    shares: float
    percentage: float
    cumulative_percentage: float
    is_negative: bool


class WaterfallResponse(BaseModel):
    rows: list[WaterfallRowOut]
    total_shares: float
    total_dilution: float
    sponsor_dilution: float
    warrant_dilution: float
    pipe_dilution: float


class OwnershipStageIn(BaseModel):
    id: str
    name: str
    total_shares: float = Field(..., ge=0)
    public_ownership: float = Field(0, ge=0, le=100)
    sponsor_ownership: float = Field(0, ge=0, le=100)
    target_ownership: float = Field(0, ge=0, le=100)
    pipe_ownership: float = Field(0, ge=0, le=100)
    earnout_ownership: float = Field(0, ge=0, le=100)
    description: Optional[str] = None


class StageAnalysisRequest(BaseModel):
    stages: list[OwnershipStageIn] = Field(..., min_length=1)
    selected_stage: str = "post_pipe"


class StageDilutionOut(BaseModel):
    stage_id: str
    public_dilution: float
    sponsor_dilution: float
    share_increase: float


class StageAnalysisResponse(BaseModel):
    stages: list[OwnershipStageIn]
    dilution: Optional[StageDilutionOut] = None
