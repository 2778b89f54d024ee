# storefront/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from storefront.models.enums import UserRole, UserStatus
from .base import BaseSchema

NAME_PATTERN = r"^[A-Za-z\s]+$"
PHONE_PATTERN = r"^\+?[\d\s\-()]+$"


class UserOut(BaseSchema):
    """비밀번호 해시는 절대 내보내지 않음"""

    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    email_verified_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ProfileUpdateIn(BaseSchema):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100, pattern=NAME_PATTERN)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, pattern=NAME_PATTERN)
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)


class StatusUpdateIn(BaseSchema):
    status: UserStatus
