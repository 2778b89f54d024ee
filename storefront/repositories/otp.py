# storefront/repositories/otp.py
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete, desc, func, select, update

from storefront.models.enums import OtpType
from storefront.models.one_time_code import OneTimeCode
from storefront.repositories.base import Repository


class OtpRepository(Repository):
    def create(self, user_id: int, otp_code: str, type: OtpType, expires_at: datetime, created_at: datetime) -> OneTimeCode:
        row = OneTimeCode(
            user_id=user_id,
            otp_code=otp_code,
            type=type,
            expires_at=expires_at,
            used=False,
            created_at=created_at,
        )
        with self.guard("create otp"):
            self.db.add(row)
            self.db.flush()
        return row

    def find_valid(self, user_id: int, otp_code: str, type: OtpType, now: datetime) -> Optional[OneTimeCode]:
        q = (
            select(OneTimeCode)
            .where(
                OneTimeCode.user_id == user_id,
                OneTimeCode.otp_code == otp_code,
                OneTimeCode.type == type,
                OneTimeCode.used.is_(False),
                OneTimeCode.expires_at > now,
            )
            .order_by(desc(OneTimeCode.created_at), desc(OneTimeCode.id))
            .limit(1)
        )
        with self.guard("find valid otp"):
            return self.db.execute(q).scalar_one_or_none()

    def find_latest(self, user_id: int, type: OtpType) -> Optional[OneTimeCode]:
        rows = self.recent(user_id, type, limit=1)
        return rows[0] if rows else None

    def recent(self, user_id: int, type: OtpType, limit: int = 5) -> List[OneTimeCode]:
        q = (
            select(OneTimeCode)
            .where(OneTimeCode.user_id == user_id, OneTimeCode.type == type)
            .order_by(desc(OneTimeCode.created_at), desc(OneTimeCode.id))
            .limit(limit)
        )
        with self.guard("list recent otps"):
            return list(self.db.execute(q).scalars().all())

    def mark_used(self, otp_id: int) -> bool:
        """조건부 UPDATE. 이미 쓰인 코드면 False (동시 검증 중 하나만 성공)."""
        with self.guard("mark otp used"):
            result = self.db.execute(
                update(OneTimeCode)
                .where(OneTimeCode.id == otp_id, OneTimeCode.used.is_(False))
                .values(used=True)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount > 0

    def has_recent_request(self, user_id: int, type: OtpType, now: datetime, minutes: int = 1) -> bool:
        q = select(func.count(OneTimeCode.id)).where(
            OneTimeCode.user_id == user_id,
            OneTimeCode.type == type,
            OneTimeCode.created_at > now - timedelta(minutes=minutes),
        )
        with self.guard("check recent otp request"):
            return (self.db.scalar(q) or 0) > 0

    def invalidate_for_user(self, user_id: int, type: OtpType) -> int:
        with self.guard("invalidate otps"):
            result = self.db.execute(
                update(OneTimeCode)
                .where(OneTimeCode.user_id == user_id, OneTimeCode.type == type, OneTimeCode.used.is_(False))
                .values(used=True)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount

    def delete_expired(self, now: datetime) -> int:
        with self.guard("delete expired otps"):
            result = self.db.execute(
                delete(OneTimeCode)
                .where(OneTimeCode.expires_at < now)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount
