# storefront/core/errors.py
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """도메인(운영) 에러의 공통 부모. 하위 클래스가 status_code / code 를 고정한다."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None, code: Optional[str] = None):
        self.message = message or self.message
        if code:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


# ---------- 400 ----------
class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class AlreadyVerified(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "EMAIL_ALREADY_VERIFIED"
    message = "Email already verified"


class InvalidOtp(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_OTP"
    message = "Invalid OTP code"


class OtpExpired(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "OTP_EXPIRED"
    message = "OTP has expired"


class OtpAlreadyUsed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "OTP_ALREADY_USED"
    message = "OTP has already been used"


class InvalidOrExpiredToken(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_RESET_TOKEN"
    message = "Invalid or expired reset token"


class InvalidCurrentPassword(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_CURRENT_PASSWORD"
    message = "Current password is incorrect"


class InvalidOperation(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_OPERATION"
    message = "Operation not allowed"


# ---------- 401 ----------
class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class MissingToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NO_TOKEN"
    message = "Unauthorized access"


class TokenExpired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "TOKEN_EXPIRED"
    message = "Token has expired"


class InvalidToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"
    message = "Invalid token"


class WrongTokenType(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN_TYPE"
    message = "Invalid token type"


class SessionUserNotFound(AppError):
    # 토큰은 유효하지만 사용자가 없거나 비활성일 때 (refresh)
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "USER_NOT_FOUND"
    message = "User not found or inactive"


# ---------- 403 ----------
class AccountSuspended(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCOUNT_SUSPENDED"
    message = "Account is suspended"


class EmailNotVerified(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "EMAIL_NOT_VERIFIED"
    message = "Please verify your email before logging in"


class AccountInactive(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCOUNT_INACTIVE"
    message = "Account is not active"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Access forbidden"


# ---------- 404 ----------
class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class UserNotFound(NotFound):
    code = "USER_NOT_FOUND"
    message = "User not found"


class CategoryNotFound(NotFound):
    code = "CATEGORY_NOT_FOUND"
    message = "Category not found"


class ProductNotFound(NotFound):
    code = "PRODUCT_NOT_FOUND"
    message = "Product not found"


class ProductImageNotFound(NotFound):
    code = "PRODUCT_IMAGE_NOT_FOUND"
    message = "Product image not found"


# ---------- 409 ----------
class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Resource conflict"


class DuplicateEmail(Conflict):
    code = "USER_ALREADY_EXISTS"
    message = "User already exists"


# ---------- 429 ----------
class TooManyRequests(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "TOO_MANY_REQUESTS"
    message = "Please wait before requesting again"


# ---------- 500 ----------
class StorageError(AppError):
    code = "STORAGE_ERROR"
    message = "Database operation failed"


class NotificationError(AppError):
    code = "NOTIFICATION_ERROR"
    message = "Failed to send notification"


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    message = "Something went wrong"


# ---------- handlers ----------
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s (%s)", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ())[1:]) or None,
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationFailed(details=details).to_dict(),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # 내부 정보는 응답에 싣지 않고 서버 로그에만 남김
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError().to_dict(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
