from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.core.auth import require_roles
from storefront.core.deps import get_user_service
from storefront.models.enums import UserRole, UserStatus
from storefront.schemas.common import ApiResponse, MessageOut, PageResponse, Pagination
from storefront.schemas.user import StatusUpdateIn, UserOut
from storefront.services.auth import AuthContext
from storefront.services.users import UserService

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_roles(UserRole.ADMIN)


@router.get("/users", response_model=PageResponse[UserOut])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    status: Optional[UserStatus] = Query(None),
    _: AuthContext = Depends(admin_only),
    users: UserService = Depends(get_user_service),
):
    rows, total = users.list_users(page=page, limit=limit, role=role, status=status)
    return {
        "success": True,
        "message": "Users retrieved successfully",
        "data": [UserOut.model_validate(u) for u in rows],
        "pagination": Pagination.build(page, limit, total),
    }


@router.get("/users/{user_id}", response_model=ApiResponse[UserOut])
def get_user(user_id: int, _: AuthContext = Depends(admin_only), users: UserService = Depends(get_user_service)):
    return {"success": True, "message": "User retrieved successfully", "data": UserOut.model_validate(users.get_user(user_id))}


@router.put("/users/{user_id}/status", response_model=ApiResponse[UserOut])
def update_user_status(
    user_id: int,
    payload: StatusUpdateIn,
    admin: AuthContext = Depends(admin_only),
    users: UserService = Depends(get_user_service),
):
    user = users.update_status(user_id, payload.status, acting_user_id=admin.id)
    return {"success": True, "message": "User status updated successfully", "data": UserOut.model_validate(user)}


@router.delete("/users/{user_id}", response_model=MessageOut)
def delete_user(user_id: int, admin: AuthContext = Depends(admin_only), users: UserService = Depends(get_user_service)):
    users.delete_user(user_id, acting_user_id=admin.id)
    return {"success": True, "message": "User deleted successfully"}
