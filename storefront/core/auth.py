from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.core.deps import get_auth_service
from storefront.core.errors import MissingToken
from storefront.models.enums import UserRole
from storefront.services.auth import AuthContext, AuthService

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """Bearer access token -> 활성 사용자 컨텍스트 {id, email, role, status}"""
    if not creds or (creds.scheme or "").lower() != "bearer" or not creds.credentials:
        raise MissingToken()
    return auth.authenticate(creds.credentials)


def require_roles(*roles: UserRole):
    """역할 제한 dependency. 예: Depends(require_roles(UserRole.ADMIN))"""

    def checker(user: AuthContext = Depends(get_current_user)) -> AuthContext:
        return AuthService.authorize(user, roles)

    return checker
