"""Pydantic schemas for Company API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    size: Optional[str] = None
    headquarters: Optional[str] = None
    founded_year: Optional[int] = None
    logo_url: Optional[str] = None

    @field_validator("founded_year")
    @classmethod
    def validate_founded_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1800 <= v <= datetime.utcnow().year:
            raise ValueError("founded_year must be between 1800 and the current year")
        return v


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(CompanyBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class CompanyResponse(CompanyBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CompanyDealBase(BaseModel):
    deal_name: str = Field(..., min_length=1, max_length=255)
    role: Optional[str] = None
    status: Optional[str] = None
    value: Optional[float] = Field(None, ge=0)
    closed_at: Optional[datetime] = None


class CompanyDealUpdate(BaseModel):
    deal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[str] = None
    status: Optional[str] = None
    value: Optional[float] = Field(None, ge=0)
    closed_at: Optional[datetime] = None


class CompanyDealResponse(CompanyDealBase):
    id: int
    company_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class CompanyDetail(CompanyResponse):
    contact_count: int = 0
    deals: list[CompanyDealResponse] = []


class CompanySearchResult(BaseModel):
    id: int
    name: str
    industry: Optional[str] = None

    class Config:
        from_attributes = True
