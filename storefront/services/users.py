# storefront/services/users.py
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from storefront.core.errors import (
    AccountSuspended,
    AlreadyVerified,
    DuplicateEmail,
    InvalidOperation,
    NotificationError,
    UserNotFound,
    ValidationFailed,
)
from storefront.core.security import hash_password
from storefront.models.enums import OtpType, UserRole, UserStatus
from storefront.models.user import User
from storefront.repositories.users import UserRepository
from storefront.services.notifications import NotificationService
from storefront.services.otp import OtpService
from storefront.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "phone")


class UserService:
    """Registration, email verification, profile and admin-side user management."""

    def __init__(
        self,
        db: Session,
        users: UserRepository,
        otp: OtpService,
        notifier: NotificationService,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.users = users
        self.otp = otp
        self.notifier = notifier
        self.clock = clock

    # ---------- registration ----------
    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        if self.users.exists_by_email(email):
            raise DuplicateEmail()

        user = self.users.create(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
        )
        self.db.commit()
        logger.info("registered user_id=%s role=%s", user.id, user.role.value)

        self.otp.issue(user, OtpType.EMAIL_VERIFICATION)
        return user

    def _pending_user(self, email: str) -> User:
        user = self.users.find_by_email(email)
        if not user:
            raise UserNotFound()
        if user.status == UserStatus.ACTIVE:
            raise AlreadyVerified()
        # PENDING_VERIFICATION 만 OTP 로 ACTIVE 가 될 수 있음 (정지 해제는 관리자만)
        if user.status != UserStatus.PENDING_VERIFICATION:
            raise AccountSuspended()
        return user

    def verify_email(self, email: str, code: str) -> User:
        user = self._pending_user(email)
        self.otp.verify(user.id, code, OtpType.EMAIL_VERIFICATION)

        now = self.clock()
        user = self.users.update_fields(
            user.id,
            status=UserStatus.ACTIVE,
            email_verified_at=now,
            at=now,
        )
        self.db.commit()
        logger.info("email verified for user_id=%s", user.id)

        # 환영 메일은 실패해도 인증 결과는 유지
        try:
            self.notifier.send_welcome(user)
        except NotificationError:
            logger.warning("welcome email not delivered for user_id=%s", user.id)
        return user

    def resend_otp(self, email: str) -> None:
        user = self._pending_user(email)
        self.otp.issue(user, OtpType.EMAIL_VERIFICATION)

    # ---------- profile ----------
    def get_profile(self, user_id: int) -> User:
        return self.users.get(user_id)

    def update_profile(self, user_id: int, **fields) -> User:
        changes = {k: v for k, v in fields.items() if k in PROFILE_FIELDS and v is not None}
        if not changes:
            raise ValidationFailed("No updatable fields provided")
        user = self.users.update_fields(user_id, at=self.clock(), **changes)
        self.db.commit()
        return user

    # ---------- admin ----------
    def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> Tuple[List[User], int]:
        return self.users.list(page=page, limit=limit, role=role, status=status)

    def get_user(self, user_id: int) -> User:
        return self.users.get(user_id)

    def update_status(self, user_id: int, status: UserStatus, acting_user_id: Optional[int] = None) -> User:
        if status == UserStatus.DELETED:
            raise InvalidOperation("Use the delete endpoint to remove a user")
        if acting_user_id is not None and acting_user_id == user_id:
            raise InvalidOperation("You cannot change your own status")

        user = self.users.update_fields(user_id, at=self.clock(), status=status)
        self.db.commit()
        logger.info("user_id=%s status set to %s", user.id, status.value)
        return user

    def delete_user(self, user_id: int, acting_user_id: Optional[int] = None) -> None:
        if acting_user_id is not None and acting_user_id == user_id:
            raise InvalidOperation("You cannot delete your own account")
        self.users.soft_delete(user_id, at=self.clock())
        self.db.commit()
        logger.info("user_id=%s soft deleted", user_id)
