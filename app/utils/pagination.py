"""
Offset pagination shared by the list endpoints (pipeline board, placements).
"""

from pydantic import BaseModel, Field
import math


def calculate_offset(page: int, limit: int) -> int:
    """
    Database offset for a 1-indexed page.

    Example:
        >>> calculate_offset(3, 25)
        50
    """
    if page < 1:
        raise ValueError("Page must be >= 1")
    if limit < 1:
        raise ValueError("Limit must be >= 1")

    return (page - 1) * limit


def calculate_total_pages(total: int, limit: int) -> int:
    if total < 0:
        raise ValueError("Total must be >= 0")
    if limit < 1:
        raise ValueError("Limit must be >= 1")

    return math.ceil(total / limit) if total else 0


class PaginationParams(BaseModel):
    """Query parameters for a page of pipeline entries or placements."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(default=50, ge=1, le=200, description="Items per page (max 200)")

    def get_offset(self) -> int:
        return calculate_offset(self.page, self.limit)


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_params(cls, params: PaginationParams, total: int) -> "PaginationMeta":
        total_pages = calculate_total_pages(total, params.limit)
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=total_pages,
            has_next=params.page < total_pages,
            has_previous=params.page > 1,
        )
