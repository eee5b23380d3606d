"""Pagination envelope helpers shared by every list endpoint."""

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def page_count(total: int, limit: int) -> int:
    """Number of pages for ``total`` rows; 0 when there are no rows."""
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": page_count(total, limit),
    }


def paginated_response(data: list[Any], page: int, limit: int, total: int, **extra: Any) -> dict:
    """Standard list envelope: ``{success, data, pagination, ...extra}``."""
    body = {
        "success": True,
        "data": data,
        "pagination": pagination_meta(page, limit, total),
    }
    body.update(extra)
    return body


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of fetched rows plus the unpaged total."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return page_count(self.total, self.limit)

    def envelope(self, data: list[Any], **extra: Any) -> dict:
        return paginated_response(data, self.page, self.limit, self.total, **extra)
