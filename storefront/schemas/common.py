# storefront/schemas/common.py
import math
from typing import Generic, List, Optional, TypeVar

from pydantic import Field

from .base import BaseSchema

T = TypeVar("T")


class Pagination(BaseSchema):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    total: int = Field(0, ge=0)
    pages: int = Field(0, ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class ApiResponse(BaseSchema, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class PageResponse(BaseSchema, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: List[T]
    pagination: Pagination


class MessageOut(BaseSchema):
    success: bool = True
    message: str
