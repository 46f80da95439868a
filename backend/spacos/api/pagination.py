"""Offset pagination for list endpoints."""
import math
from typing import Optional

from fastapi import Query

from spacos.core.config import get_settings


class PageParams:
    """Query dependency: ?page=1&page_size=20."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1),
    ):
        settings = get_settings()
        self.page = page
        self.page_size = min(page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(query, params: PageParams) -> dict:
    """Run a count and a page query, returning the Page envelope fields."""
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.page_size).all()
    return {
        "items": items,
        "total": total,
        "page": params.page,
        "page_size": params.page_size,
        "total_pages": math.ceil(total / params.page_size) if total else 0,
    }
