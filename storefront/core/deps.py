# storefront/core/deps.py
"""요청마다 repository -> service 를 조립하는 FastAPI dependency 모음.

테스트에서는 get_db / get_mailer / get_clock 만 dependency_overrides 로 바꾸면 된다.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.db import get_db
from storefront.core.security import TokenService, build_token_service
from storefront.repositories.categories import CategoryRepository
from storefront.repositories.otp import OtpRepository
from storefront.repositories.password_resets import PasswordResetRepository
from storefront.repositories.products import ProductImageRepository, ProductRepository
from storefront.repositories.users import UserRepository
from storefront.services.auth import AuthService
from storefront.services.categories import CategoryService
from storefront.services.notifications import Mailer, NotificationService, build_mailer
from storefront.services.otp import OtpService
from storefront.services.products import ProductService
from storefront.services.users import UserService
from storefront.utils.clock import Clock, utcnow


def get_mailer() -> Mailer:
    return build_mailer()


def get_clock() -> Clock:
    return utcnow


def get_token_service() -> TokenService:
    return build_token_service()


def get_notifier(mailer: Mailer = Depends(get_mailer)) -> NotificationService:
    return NotificationService(mailer, otp_expire_minutes=settings.OTP_EXPIRE_MINUTES)


def get_otp_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> OtpService:
    return OtpService(
        db,
        OtpRepository(db),
        notifier,
        length=settings.OTP_LENGTH,
        expire_minutes=settings.OTP_EXPIRE_MINUTES,
        cooldown_minutes=settings.OTP_COOLDOWN_MINUTES,
        clock=clock,
    )


def get_auth_service(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    notifier: NotificationService = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> AuthService:
    return AuthService(
        db,
        UserRepository(db),
        PasswordResetRepository(db),
        tokens,
        notifier,
        frontend_url=settings.FRONTEND_URL,
        reset_expire_minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES,
        reset_cooldown_minutes=settings.PASSWORD_RESET_COOLDOWN_MINUTES,
        clock=clock,
    )


def get_user_service(
    db: Session = Depends(get_db),
    otp: OtpService = Depends(get_otp_service),
    notifier: NotificationService = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> UserService:
    return UserService(db, UserRepository(db), otp, notifier, clock=clock)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db, CategoryRepository(db), ProductRepository(db))


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db, ProductRepository(db), ProductImageRepository(db), CategoryRepository(db))
