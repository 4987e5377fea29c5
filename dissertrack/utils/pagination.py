"""
Pagination Utility Module

In-memory pagination helpers for meeting lists shown page by page.
"""
from typing import TypeVar, Generic, List, Any, Sequence
from pydantic import BaseModel

T = TypeVar('T')


class PaginationParams(BaseModel):
    """Standard pagination parameters"""
    page: int = 1
    page_size: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard paginated response"""
    items: List[Any]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


def paginate_items(
    items: Sequence[T],
    page: int = 1,
    page_size: int = 10,
) -> PaginatedResponse:
    """
    Slice an already filtered sequence into one page.

    Args:
        items: Full list of items
        page: Page number (1-indexed); clamped into range
        page_size: Items per page

    Returns:
        PaginatedResponse for the requested page
    """
    page_size = max(1, min(100, page_size))  # Cap at 100 items per page
    total = len(items)
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1
    page = max(1, min(page, total_pages))

    offset = (page - 1) * page_size
    return create_paginated_response(list(items[offset:offset + page_size]), total, page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> PaginatedResponse:
    """
    Create a paginated response.

    Args:
        items: List of items for current page
        total: Total count of all items
        page: Current page number
        page_size: Items per page
    """
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return PaginatedResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )
