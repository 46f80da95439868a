"""Pydantic schemas for Filing API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.filing import FilingType, FilingStatus


class FilingBase(BaseModel):
    """Base filing schema."""
    type: FilingType
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    file_number: Optional[str] = None
    edgar_url: Optional[str] = None
    due_date: Optional[datetime] = None


class FilingCreate(FilingBase):
    spac_id: int
    cik: Optional[str] = Field(None, max_length=10)
    accession_number: Optional[str] = None


class FilingUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    file_number: Optional[str] = None
    edgar_url: Optional[str] = None
    due_date: Optional[datetime] = None
    accession_number: Optional[str] = None


class SecCommentResponse(BaseModel):
    id: int
    filing_id: int
    comment_number: int
    comment_text: str
    category: Optional[str] = None
    received_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    response_text: Optional[str] = None
    response_date: Optional[datetime] = None
    is_resolved: bool
    resolved_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class FilingResponse(FilingBase):
    """Schema for filing response."""
    id: int
    spac_id: int
    status: FilingStatus
    cik: Optional[str] = None
    accession_number: Optional[str] = None
    filed_date: Optional[datetime] = None
    effective_date: Optional[datetime] = None
    amendment_number: int
    parent_filing_id: Optional[int] = None
    sec_comment_count: int
    sec_comment_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FilingDetail(FilingResponse):
    amendments: list[FilingResponse] = []
    sec_comments: list[SecCommentResponse] = []


class FilingStatusRequest(BaseModel):
    status: FilingStatus
    filed_date: Optional[datetime] = None
    accession_number: Optional[str] = None
    effective_date: Optional[datetime] = None


class AmendmentRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None


class SecCommentCreate(BaseModel):
    comment_number: int = Field(..., ge=1)
    comment_text: str = Field(..., min_length=1)
    category: Optional[str] = None
    received_date: Optional[datetime] = None
    due_date: Optional[datetime] = None


class SecCommentRespond(BaseModel):
    response_text: str = Field(..., min_length=1)
    is_resolved: bool = True


class EdgarFiling(BaseModel):
    accession_number: str
    form_type: str
    filing_date: str
    primary_document: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    mapped_type: FilingType


class EdgarSyncResult(BaseModel):
    synced: int
    created: int
    updated: int
    skipped: int
    filings: list[FilingResponse]


class FilingStatistics(BaseModel):
    total: int
    by_type: dict[str, int]
    by_status: dict[str, int]
    pending_sec_comments: int
    upcoming_due: int


class EdgarCompany(BaseModel):
    cik: str
    name: Optional[str] = None
    sic: Optional[str] = None
    sic_description: Optional[str] = None
    tickers: list[str] = []
    exchanges: list[str] = []
