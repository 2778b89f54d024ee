# storefront/schemas/category.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import BaseSchema
from .common import Pagination
from .product import ProductOut


class CategoryIn(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    parent_id: Optional[int] = Field(None, ge=1)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    sort_order: int = Field(0, ge=0)


class CategoryUpdateIn(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    parent_id: Optional[int] = Field(None, ge=1)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class CategoryOut(BaseSchema):
    id: int
    name: str
    description: Optional[str] = None
    slug: str
    parent_id: Optional[int] = None
    parent_name: Optional[str] = None
    parent_slug: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime


class CategoryWithProductsOut(BaseSchema):
    category: CategoryOut
    products: List[ProductOut]
    pagination: Pagination
