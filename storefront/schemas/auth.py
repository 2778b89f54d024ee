# storefront/schemas/auth.py
import re
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from storefront.models.enums import UserRole
from .base import BaseSchema
from .user import NAME_PATTERN, PHONE_PATTERN, UserOut

# 대문자, 소문자, 숫자, 특수문자(@$!%*?&) 각각 1개 이상
PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$")


def _strong_password(v: str) -> str:
    if not PASSWORD_RULE.match(v):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )
    return v


class RegisterIn(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100, pattern=NAME_PATTERN)
    last_name: str = Field(..., min_length=1, max_length=100, pattern=NAME_PATTERN)
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)
    role: UserRole = UserRole.CUSTOMER

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        return _strong_password(v)


class LoginIn(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyOtpIn(BaseSchema):
    email: EmailStr
    otp_code: str = Field(..., pattern=r"^\d{6}$")


class EmailIn(BaseSchema):
    email: EmailStr


class ResetPasswordIn(BaseSchema):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        return _strong_password(v)


class RefreshIn(BaseSchema):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordIn(BaseSchema):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def _validate_password(cls, v: str) -> str:
        return _strong_password(v)


class LoginOut(BaseSchema):
    user: UserOut
    access_token: str
    refresh_token: str


class TokenUserOut(BaseSchema):
    id: int
    email: str
    role: UserRole


class RefreshOut(BaseSchema):
    access_token: str
    user: TokenUserOut
