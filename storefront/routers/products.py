from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from storefront.core.auth import require_roles
from storefront.core.deps import get_product_service
from storefront.models.enums import ProductStatus, UserRole
from storefront.repositories.products import ProductFilter
from storefront.schemas.common import ApiResponse, MessageOut, PageResponse, Pagination
from storefront.schemas.product import (
    ProductImageIn,
    ProductImageOut,
    ProductIn,
    ProductOut,
    ProductUpdateIn,
    StockUpdateIn,
)
from storefront.services.auth import AuthContext
from storefront.services.products import ProductService

router = APIRouter(prefix="/products", tags=["products"])

catalog_writer = require_roles(UserRole.ADMIN, UserRole.SELLER)

SortBy = Literal["created_at", "name", "price", "stock_quantity"]
SortOrder = Literal["asc", "desc"]


def product_filters(
    status: Optional[ProductStatus] = Query(None),
    category_id: Optional[int] = Query(None, ge=1),
    is_featured: Optional[bool] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: Optional[bool] = Query(None),
    brand: Optional[str] = Query(None),
    sort_by: SortBy = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
) -> ProductFilter:
    return ProductFilter(
        status=status,
        category_id=category_id,
        is_featured=is_featured,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        brand=brand,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def _page(rows, page: int, limit: int, total: int, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "data": [ProductOut.model_validate(p) for p in rows],
        "pagination": Pagination.build(page, limit, total),
    }


# ---------- public ----------
@router.get("", response_model=PageResponse[ProductOut])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    filters: ProductFilter = Depends(product_filters),
    svc: ProductService = Depends(get_product_service),
):
    rows, total = svc.list(filters, page=page, limit=limit)
    return _page(rows, page, limit, total, "Products retrieved successfully")


@router.get("/active", response_model=PageResponse[ProductOut])
def list_active_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    filters: ProductFilter = Depends(product_filters),
    svc: ProductService = Depends(get_product_service),
):
    rows, total = svc.list_active(filters, page=page, limit=limit)
    return _page(rows, page, limit, total, "Active products retrieved successfully")


@router.get("/search", response_model=PageResponse[ProductOut])
def search_products(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    filters: ProductFilter = Depends(product_filters),
    svc: ProductService = Depends(get_product_service),
):
    rows, total = svc.search(q, filters, page=page, limit=limit)
    return _page(rows, page, limit, total, "Search completed successfully")


@router.get("/featured", response_model=ApiResponse[List[ProductOut]])
def featured_products(limit: int = Query(10, ge=1, le=50), svc: ProductService = Depends(get_product_service)):
    rows = svc.featured(limit=limit)
    return {"success": True, "message": "Featured products retrieved successfully", "data": [ProductOut.model_validate(p) for p in rows]}


@router.get("/category/{category_id}", response_model=PageResponse[ProductOut])
def products_by_category(
    category_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: ProductService = Depends(get_product_service),
):
    rows, total = svc.by_category(category_id, page=page, limit=limit)
    return _page(rows, page, limit, total, "Products retrieved successfully")


@router.get("/slug/{slug}", response_model=ApiResponse[ProductOut])
def get_product_by_slug(slug: str, svc: ProductService = Depends(get_product_service)):
    return {"success": True, "message": "Product retrieved successfully", "data": ProductOut.model_validate(svc.get_by_slug(slug))}


@router.get("/{product_id}", response_model=ApiResponse[ProductOut])
def get_product(product_id: int, svc: ProductService = Depends(get_product_service)):
    return {"success": True, "message": "Product retrieved successfully", "data": ProductOut.model_validate(svc.get(product_id))}


# ---------- ADMIN / SELLER ----------
@router.post("", response_model=ApiResponse[ProductOut], status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductIn,
    current: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    product = svc.create(created_by=current.id, **payload.model_dump())
    return {"success": True, "message": "Product created successfully", "data": ProductOut.model_validate(product)}


@router.put("/{product_id}", response_model=ApiResponse[ProductOut])
def update_product(
    product_id: int,
    payload: ProductUpdateIn,
    _: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    product = svc.update(product_id, **payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Product updated successfully", "data": ProductOut.model_validate(product)}


@router.patch("/{product_id}/stock", response_model=ApiResponse[ProductOut])
def update_product_stock(
    product_id: int,
    payload: StockUpdateIn,
    _: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    product = svc.update_stock(product_id, payload.stock_quantity)
    return {"success": True, "message": "Product stock updated successfully", "data": ProductOut.model_validate(product)}


@router.delete("/{product_id}", response_model=MessageOut)
def delete_product(
    product_id: int,
    _: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    svc.delete(product_id)
    return {"success": True, "message": "Product deleted successfully"}


@router.post("/{product_id}/images", response_model=ApiResponse[ProductImageOut], status_code=status.HTTP_201_CREATED)
def add_product_image(
    product_id: int,
    payload: ProductImageIn,
    _: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    image = svc.add_image(product_id, payload.image_url, alt_text=payload.alt_text, is_primary=payload.is_primary)
    return {"success": True, "message": "Product image added successfully", "data": ProductImageOut.model_validate(image)}


@router.put("/{product_id}/images/{image_id}/primary", response_model=ApiResponse[ProductImageOut])
def set_primary_image(
    product_id: int,
    image_id: int,
    _: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    image = svc.set_primary_image(product_id, image_id)
    return {"success": True, "message": "Primary image updated successfully", "data": ProductImageOut.model_validate(image)}


@router.delete("/{product_id}/images/{image_id}", response_model=MessageOut)
def delete_product_image(
    product_id: int,
    image_id: int,
    _: AuthContext = Depends(catalog_writer),
    svc: ProductService = Depends(get_product_service),
):
    svc.delete_image(product_id, image_id)
    return {"success": True, "message": "Product image deleted successfully"}
