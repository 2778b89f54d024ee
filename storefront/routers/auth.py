import logging

from fastapi import APIRouter, Depends, Request, status

from storefront.core.auth import get_current_user
from storefront.core.deps import get_auth_service, get_user_service
from storefront.core.errors import TooManyRequests, UserNotFound
from storefront.schemas.auth import (
    ChangePasswordIn,
    EmailIn,
    LoginIn,
    LoginOut,
    RefreshIn,
    RefreshOut,
    RegisterIn,
    ResetPasswordIn,
    VerifyOtpIn,
)
from storefront.schemas.common import ApiResponse, MessageOut
from storefront.schemas.user import ProfileUpdateIn, UserOut
from storefront.services.auth import AuthContext, AuthService
from storefront.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"


@router.post("/register", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, users: UserService = Depends(get_user_service)):
    user = users.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        role=payload.role,
    )
    return {
        "success": True,
        "message": "User registered successfully. Please check your email for the verification code",
        "data": UserOut.model_validate(user),
    }


@router.post("/login", response_model=ApiResponse[LoginOut])
def login(payload: LoginIn, request: Request, auth: AuthService = Depends(get_auth_service)):
    result = auth.login(
        payload.email,
        payload.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return {
        "success": True,
        "message": "Login successful",
        "data": LoginOut(
            user=UserOut.model_validate(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        ),
    }


@router.post("/verify-otp", response_model=ApiResponse[UserOut])
def verify_otp(payload: VerifyOtpIn, users: UserService = Depends(get_user_service)):
    user = users.verify_email(payload.email, payload.otp_code)
    return {"success": True, "message": "Email verified successfully", "data": UserOut.model_validate(user)}


@router.post("/resend-otp", response_model=MessageOut)
def resend_otp(payload: EmailIn, users: UserService = Depends(get_user_service)):
    users.resend_otp(payload.email)
    return {"success": True, "message": "Verification code sent to your email"}


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(payload: EmailIn, auth: AuthService = Depends(get_auth_service)):
    # 존재 여부와 무관하게 같은 응답 (계정 열거 방지)
    try:
        auth.request_password_reset(payload.email)
    except UserNotFound:
        logger.info("password reset requested for unknown email")
    except TooManyRequests:
        logger.info("password reset requested again within cool-down")
    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password", response_model=MessageOut)
def reset_password(payload: ResetPasswordIn, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(payload.token, payload.password)
    return {"success": True, "message": "Password reset successfully"}


@router.post("/refresh-token", response_model=ApiResponse[RefreshOut])
def refresh_token(payload: RefreshIn, auth: AuthService = Depends(get_auth_service)):
    result = auth.refresh_access_token(payload.refresh_token)
    return {
        "success": True,
        "message": "Token refreshed successfully",
        "data": {
            "access_token": result.access_token,
            "user": {"id": result.user.id, "email": result.user.email, "role": result.user.role},
        },
    }


@router.post("/logout", response_model=MessageOut)
def logout(current: AuthContext = Depends(get_current_user)):
    # 토큰은 stateless. 클라이언트가 폐기한다.
    logger.info("user_id=%s logged out", current.id)
    return {"success": True, "message": "Logout successful"}


@router.get("/me", response_model=ApiResponse[UserOut])
def get_me(current: AuthContext = Depends(get_current_user), users: UserService = Depends(get_user_service)):
    user = users.get_profile(current.id)
    return {"success": True, "message": "Profile retrieved successfully", "data": UserOut.model_validate(user)}


@router.put("/me", response_model=ApiResponse[UserOut])
def update_me(
    payload: ProfileUpdateIn,
    current: AuthContext = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    user = users.update_profile(current.id, **payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Profile updated successfully", "data": UserOut.model_validate(user)}


@router.put("/change-password", response_model=MessageOut)
def change_password(
    payload: ChangePasswordIn,
    current: AuthContext = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(current.id, payload.current_password, payload.new_password)
    return {"success": True, "message": "Password changed successfully"}
