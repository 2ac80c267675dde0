from __future__ import annotations
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ApiResponse(BaseModel, Generic[T]):
    """Uniform envelope; routers serialise it with `exclude_none`."""

    success: bool = True
    data: T | None = None
    error: str | None = None
    message: str | None = None
    details: Any | None = None
    pagination: Pagination | None = None
