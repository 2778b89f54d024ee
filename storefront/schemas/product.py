# storefront/schemas/product.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_serializer, model_validator

from storefront.models.enums import ProductStatus
from .base import BaseSchema


class ProductImageIn(BaseSchema):
    image_url: str = Field(..., min_length=1, max_length=500)
    alt_text: Optional[str] = Field(None, max_length=255)
    is_primary: bool = False


class ProductImageOut(BaseSchema):
    id: int
    product_id: int
    image_url: str
    alt_text: Optional[str] = None
    is_primary: bool
    sort_order: int
    created_at: datetime


class ProductIn(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    sku: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(5, ge=0)
    category_id: int = Field(..., ge=1)
    brand: Optional[str] = Field(None, max_length=100)
    status: ProductStatus = ProductStatus.DRAFT
    is_featured: bool = False

    @model_validator(mode="after")
    def _compare_price_above_price(self):
        if self.compare_price is not None and self.compare_price <= self.price:
            raise ValueError("compare_price must be greater than price")
        return self


class ProductUpdateIn(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, ge=1)
    brand: Optional[str] = Field(None, max_length=100)
    status: Optional[ProductStatus] = None
    is_featured: Optional[bool] = None


class StockUpdateIn(BaseSchema):
    stock_quantity: int = Field(..., ge=0)


class ProductOut(BaseSchema):
    id: int
    name: str
    description: Optional[str] = None
    slug: str
    sku: str
    price: Decimal
    compare_price: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    stock_quantity: int
    low_stock_threshold: int
    category_id: int
    category_name: Optional[str] = None
    brand: Optional[str] = None
    status: ProductStatus
    is_featured: bool
    created_by: Optional[int] = None
    images: List[ProductImageOut] = []
    created_at: datetime
    updated_at: datetime

    @field_serializer("price", "compare_price", "cost_price")
    def _money(self, v: Optional[Decimal]):
        # JSON 에서는 숫자로
        return float(v) if v is not None else None
