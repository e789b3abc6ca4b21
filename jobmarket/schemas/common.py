"""
Common schemas used across the API.
"""

import re
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination block of list responses."""

    current_page: int = Field(description="Current page number")
    total_pages: int = Field(description="Total number of pages")
    total: int = Field(description="Total number of items matching filters")

    @classmethod
    def create(cls, total: int, page: int, limit: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(current_page=page, total_pages=pages, total=total)


class ListResponse(BaseModel, Generic[T]):
    """Generic list response wrapper."""

    status: str = "success"
    results: int
    pagination: Optional[Pagination] = None
    data: List[T]


class DataResponse(BaseModel, Generic[T]):
    """Generic single-item response wrapper."""

    status: str = "success"
    message: Optional[str] = None
    data: T


def sanitize_search(v: Optional[str]) -> Optional[str]:
    """Sanitize free-text search input."""
    if v is None:
        return None
    v = re.sub(r'[<>"\';\\%_]', '', v)
    return v.strip() or None

