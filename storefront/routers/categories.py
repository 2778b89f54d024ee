from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from storefront.core.auth import require_roles
from storefront.core.deps import get_category_service
from storefront.models.enums import UserRole
from storefront.schemas.category import CategoryIn, CategoryOut, CategoryUpdateIn, CategoryWithProductsOut
from storefront.schemas.common import ApiResponse, MessageOut, PageResponse, Pagination
from storefront.schemas.product import ProductOut
from storefront.services.auth import AuthContext
from storefront.services.categories import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])

catalog_writer = require_roles(UserRole.ADMIN, UserRole.SELLER)


@router.get("", response_model=PageResponse[CategoryOut])
def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = Query(None),
    parent_id: Optional[int] = Query(None, ge=1),
    svc: CategoryService = Depends(get_category_service),
):
    rows, total = svc.list(page=page, limit=limit, is_active=is_active, parent_id=parent_id)
    return {
        "success": True,
        "message": "Categories retrieved successfully",
        "data": [CategoryOut.model_validate(c) for c in rows],
        "pagination": Pagination.build(page, limit, total),
    }


@router.get("/active", response_model=ApiResponse[List[CategoryOut]])
def list_active_categories(svc: CategoryService = Depends(get_category_service)):
    rows = svc.list_active()
    return {"success": True, "message": "Active categories retrieved successfully", "data": [CategoryOut.model_validate(c) for c in rows]}


@router.get("/slug/{slug}", response_model=ApiResponse[CategoryOut])
def get_category_by_slug(slug: str, svc: CategoryService = Depends(get_category_service)):
    return {"success": True, "message": "Category retrieved successfully", "data": CategoryOut.model_validate(svc.get_by_slug(slug))}


@router.get("/{category_id}", response_model=ApiResponse[CategoryOut])
def get_category(category_id: int, svc: CategoryService = Depends(get_category_service)):
    return {"success": True, "message": "Category retrieved successfully", "data": CategoryOut.model_validate(svc.get(category_id))}


@router.get("/{category_id}/products", response_model=ApiResponse[CategoryWithProductsOut])
def get_category_products(
    category_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: CategoryService = Depends(get_category_service),
):
    category, products, total = svc.with_products(category_id, page=page, limit=limit)
    return {
        "success": True,
        "message": "Category products retrieved successfully",
        "data": CategoryWithProductsOut(
            category=CategoryOut.model_validate(category),
            products=[ProductOut.model_validate(p) for p in products],
            pagination=Pagination.build(page, limit, total),
        ),
    }


@router.post("", response_model=ApiResponse[CategoryOut], status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryIn,
    _: AuthContext = Depends(catalog_writer),
    svc: CategoryService = Depends(get_category_service),
):
    category = svc.create(**payload.model_dump())
    return {"success": True, "message": "Category created successfully", "data": CategoryOut.model_validate(category)}


@router.put("/{category_id}", response_model=ApiResponse[CategoryOut])
def update_category(
    category_id: int,
    payload: CategoryUpdateIn,
    _: AuthContext = Depends(catalog_writer),
    svc: CategoryService = Depends(get_category_service),
):
    category = svc.update(category_id, **payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Category updated successfully", "data": CategoryOut.model_validate(category)}


@router.delete("/{category_id}", response_model=MessageOut)
def delete_category(
    category_id: int,
    _: AuthContext = Depends(catalog_writer),
    svc: CategoryService = Depends(get_category_service),
):
    svc.delete(category_id)
    return {"success": True, "message": "Category deleted successfully"}
