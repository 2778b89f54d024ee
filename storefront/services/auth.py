# storefront/services/auth.py
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Iterable, Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.errors import (
    AccountInactive,
    AccountSuspended,
    EmailNotVerified,
    Forbidden,
    InvalidCredentials,
    InvalidCurrentPassword,
    InvalidOrExpiredToken,
    NotificationError,
    SessionUserNotFound,
    TooManyRequests,
    UserNotFound,
    WrongTokenType,
)
from storefront.core.security import ACCESS, REFRESH, TokenService, hash_password, verify_password
from storefront.models.enums import UserRole, UserStatus
from storefront.models.password_reset import PasswordReset
from storefront.models.user import User
from storefront.repositories.password_resets import PasswordResetRepository
from storefront.repositories.users import UserRepository
from storefront.services.notifications import NotificationService
from storefront.utils.clock import Clock, utcnow
from storefront.utils.codes import generate_reset_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """요청 단위 인증 결과 (request context 에 붙는 값)."""

    id: int
    email: str
    role: UserRole
    status: UserStatus


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


@dataclass
class RefreshResult:
    access_token: str
    user: User


class AuthService:
    def __init__(
        self,
        db: Session,
        users: UserRepository,
        resets: PasswordResetRepository,
        tokens: TokenService,
        notifier: NotificationService,
        frontend_url: str = "http://localhost:3000",
        reset_expire_minutes: int = 60,
        reset_cooldown_minutes: int = 5,
        token_generator: Callable[[], str] = generate_reset_token,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.users = users
        self.resets = resets
        self.tokens = tokens
        self.notifier = notifier
        self.frontend_url = frontend_url.rstrip("/")
        self.reset_expire_minutes = reset_expire_minutes
        self.reset_cooldown_minutes = reset_cooldown_minutes
        self.token_generator = token_generator
        self.clock = clock

    # ---------- login / refresh ----------
    def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        user = self.users.find_by_email(email)
        # 이메일 없음 / 비밀번호 틀림은 같은 에러 (계정 존재 여부 노출 방지)
        if not user:
            raise InvalidCredentials()
        if user.status == UserStatus.SUSPENDED:
            raise AccountSuspended()
        if user.status == UserStatus.PENDING_VERIFICATION:
            raise EmailNotVerified()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        now = self.clock()
        self.users.update_last_login(user.id, at=now)
        self.db.commit()

        access = self.tokens.issue_access_token(user.id, user.email, user.role)
        refresh = self.tokens.issue_refresh_token(user.id, user.email, user.role)
        logger.info("user_id=%s logged in from %s", user.id, ip_address or "-")

        try:
            self.notifier.send_login_alert(user, ip_address, user_agent, now)
        except NotificationError:
            logger.warning("login alert not delivered for user_id=%s", user.id)

        return LoginResult(user=user, access_token=access, refresh_token=refresh)

    def refresh_access_token(self, refresh_token: str) -> RefreshResult:
        claims = self.tokens.verify(refresh_token)
        if claims.type != REFRESH:
            raise WrongTokenType()

        user = self.users.find_by_id(claims.user_id)
        if not user or user.status != UserStatus.ACTIVE:
            raise SessionUserNotFound()

        # refresh token 은 회전하지 않음
        access = self.tokens.issue_access_token(user.id, user.email, user.role)
        return RefreshResult(access_token=access, user=user)

    # ---------- password reset ----------
    def create_password_reset_token(self, email: str) -> tuple:
        """Returns (user, reset row). The new row replaces any unused one."""
        user = self.users.find_by_email(email)
        if not user:
            raise UserNotFound()

        now = self.clock()
        if self.resets.has_recent_request(user.id, now, minutes=self.reset_cooldown_minutes):
            raise TooManyRequests("Please wait before requesting another password reset")

        try:
            self.resets.invalidate_for_user(user.id)
            row = self.resets.create(
                user.id,
                self.token_generator(),
                expires_at=now + timedelta(minutes=self.reset_expire_minutes),
                created_at=now,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise TooManyRequests("Please wait before requesting another password reset")

        return user, row

    def reset_url(self, row: PasswordReset) -> str:
        return f"{self.frontend_url}/reset-password?{urlencode({'token': row.token})}"

    def request_password_reset(self, email: str) -> None:
        user, row = self.create_password_reset_token(email)
        self.notifier.send_password_reset(user, self.reset_url(row))
        logger.info("password reset requested for user_id=%s", user.id)

    def reset_password(self, token: str, new_password: str) -> None:
        row = self.resets.find_valid_by_token(token, self.clock())
        if not row:
            raise InvalidOrExpiredToken()
        if not self.resets.mark_used(row.id):
            self.db.rollback()
            raise InvalidOrExpiredToken()

        # 비밀번호 교체 + 남은 reset token 전부 무효화를 한 번에 commit
        self.users.update_fields(row.user_id, at=self.clock(), password_hash=hash_password(new_password))
        self.resets.invalidate_for_user(row.user_id)
        self.db.commit()
        logger.info("password reset completed for user_id=%s", row.user_id)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self.users.get(user_id)
        if not verify_password(current_password, user.password_hash):
            raise InvalidCurrentPassword()
        self.users.update_fields(user.id, at=self.clock(), password_hash=hash_password(new_password))
        self.db.commit()
        logger.info("password changed for user_id=%s", user.id)

    # ---------- per-request ----------
    def authenticate(self, token: str) -> AuthContext:
        claims = self.tokens.verify(token)
        if claims.type != ACCESS:
            raise WrongTokenType()

        user = self.users.find_by_id(claims.user_id)
        if not user:
            raise SessionUserNotFound()
        if user.status != UserStatus.ACTIVE:
            raise AccountInactive()

        return AuthContext(id=user.id, email=user.email, role=user.role, status=user.status)

    @staticmethod
    def authorize(ctx: AuthContext, roles: Iterable[UserRole]) -> AuthContext:
        if ctx.role not in set(roles):
            raise Forbidden()
        return ctx
