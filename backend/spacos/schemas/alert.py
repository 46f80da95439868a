"""Pydantic schemas for compliance alert API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.alert import ComplianceAlertType, AlertSeverity


class AlertCreate(BaseModel):
    spac_id: Optional[int] = None
    type: ComplianceAlertType
    severity: AlertSeverity = AlertSeverity.medium
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None


class AlertResponse(BaseModel):
    """Schema for alert response."""
    id: int
    spac_id: Optional[int] = None
    type: ComplianceAlertType
    severity: AlertSeverity
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    is_read: bool
    is_dismissed: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AlertIdsRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class GenerateAlertsRequest(BaseModel):
    spac_id: Optional[int] = None


class GenerateAlertsResponse(BaseModel):
    created: int
