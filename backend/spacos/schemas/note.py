"""Pydantic schemas for Note API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    target_id: Optional[int] = None
    spac_id: Optional[int] = None
    created_by: Optional[str] = None

    @model_validator(mode="after")
    def require_target_or_spac(self):
        if self.target_id is None and self.spac_id is None:
            raise ValueError("Note must be associated with a target or SPAC")
        return self


class NoteUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class NoteResponse(BaseModel):
    id: int
    content: str
    target_id: Optional[int] = None
    spac_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
