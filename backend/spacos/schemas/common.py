"""Shared response envelopes."""
from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Paginated list envelope."""
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class CountResponse(BaseModel):
    count: int


class SuccessResponse(BaseModel):
    success: bool = True
