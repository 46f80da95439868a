"""Pydantic schemas for the AI insights feed."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class InsightAction(BaseModel):
    label: str
    href: str


class InsightMetric(BaseModel):
    label: str
    value: str
    trend: str


class InsightResponse(BaseModel):
    id: str
    type: str
    priority: str
    status: str
    title: str
    description: str
    source: str
    timestamp: datetime
    confidence: float
    action: Optional[InsightAction] = None
    metrics: list[InsightMetric] = []

    class Config:
        from_attributes = True


class MarketIntelResponse(BaseModel):
    id: str
    headline: str
    summary: str
    relevance: int
    source: str
    timestamp: datetime
    tags: list[str] = []

    class Config:
        from_attributes = True


class InsightSummary(BaseModel):
    total_insights: int
    new_insights: int
    high_priority: int
    by_type: dict[str, int]


class InsightFeedResponse(BaseModel):
    insights: list[InsightResponse]
    market_intelligence: list[MarketIntelResponse]
    last_updated: datetime
    ai_status: str = "ACTIVE"
    summary: InsightSummary

    class Config:
        from_attributes = True


class InsightActionRequest(BaseModel):
    insight_id: str


class InsightActionResponse(BaseModel):
    success: bool
    type: str
