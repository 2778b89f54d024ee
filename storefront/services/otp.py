# storefront/services/otp.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.errors import InvalidOtp, OtpAlreadyUsed, OtpExpired, StorageError, TooManyRequests
from storefront.models.enums import OtpType
from storefront.models.user import User
from storefront.repositories.otp import OtpRepository
from storefront.services.notifications import NotificationService
from storefront.utils.clock import Clock, utcnow
from storefront.utils.codes import generate_otp

logger = logging.getLogger(__name__)


@dataclass
class IssuedOtp:
    otp_id: int
    expires_at: datetime


class OtpService:
    """Issues and verifies short numeric codes bound to (user, purpose)."""

    def __init__(
        self,
        db: Session,
        otps: OtpRepository,
        notifier: NotificationService,
        length: int = 6,
        expire_minutes: int = 10,
        cooldown_minutes: int = 1,
        code_generator: Callable[[int], str] = generate_otp,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.otps = otps
        self.notifier = notifier
        self.length = length
        self.expire_minutes = expire_minutes
        self.cooldown_minutes = cooldown_minutes
        self.code_generator = code_generator
        self.clock = clock

    def issue(self, user: User, purpose: OtpType) -> IssuedOtp:
        now = self.clock()

        # 1) 쿨다운
        if self.otps.has_recent_request(user.id, purpose, now, minutes=self.cooldown_minutes):
            raise TooManyRequests("Please wait before requesting another OTP")

        code = self.code_generator(self.length)
        expires_at = now + timedelta(minutes=self.expire_minutes)

        # 2) 기존 코드 무효화 + 새 코드 저장을 한 트랜잭션으로
        try:
            self.otps.invalidate_for_user(user.id, purpose)
            row = self.otps.create(user.id, code, purpose, expires_at, created_at=now)
            self.db.commit()
        except IntegrityError:
            # 동시에 들어온 다른 요청이 먼저 미사용 코드를 넣음 (partial unique index)
            self.db.rollback()
            raise TooManyRequests("Please wait before requesting another OTP")
        except StorageError:
            self.db.rollback()
            raise

        logger.info("issued %s code for user_id=%s", purpose.value, user.id)

        # 3) 발송 실패는 호출자에게 그대로 전파
        self.notifier.send_otp(user, code, purpose)
        return IssuedOtp(otp_id=row.id, expires_at=expires_at)

    def verify(self, user_id: int, code: str, purpose: OtpType) -> None:
        """Consumes a matching code or raises InvalidOtp / OtpExpired / OtpAlreadyUsed."""
        now = self.clock()
        row = self.otps.find_valid(user_id, code, purpose, now)

        if row and self.otps.mark_used(row.id):
            self.db.commit()
            return

        # 실패 원인 구분: 가장 최근 코드가 제출된 코드와 같을 때만 used / expired 로 안내
        latest = row or self.otps.find_latest(user_id, purpose)
        if latest is not None and latest.otp_code == code:
            if latest.used or row is not None:
                raise OtpAlreadyUsed()
            if latest.expires_at <= now:
                raise OtpExpired()
        raise InvalidOtp()

    def cleanup_expired(self) -> int:
        deleted = self.otps.delete_expired(self.clock())
        self.db.commit()
        logger.info("deleted %d expired otp rows", deleted)
        return deleted
