from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, desc, func, select, update

from storefront.models.password_reset import PasswordReset
from storefront.repositories.base import Repository


class PasswordResetRepository(Repository):
    def create(self, user_id: int, token: str, expires_at: datetime, created_at: datetime) -> PasswordReset:
        row = PasswordReset(user_id=user_id, token=token, expires_at=expires_at, used=False, created_at=created_at)
        with self.guard("create password reset"):
            self.db.add(row)
            self.db.flush()
        return row

    def find_valid_by_token(self, token: str, now: datetime) -> Optional[PasswordReset]:
        q = (
            select(PasswordReset)
            .where(
                PasswordReset.token == token,
                PasswordReset.used.is_(False),
                PasswordReset.expires_at > now,
            )
            .order_by(desc(PasswordReset.created_at))
            .limit(1)
        )
        with self.guard("find password reset"):
            return self.db.execute(q).scalar_one_or_none()

    def mark_used(self, reset_id: int) -> bool:
        with self.guard("mark password reset used"):
            result = self.db.execute(
                update(PasswordReset)
                .where(PasswordReset.id == reset_id, PasswordReset.used.is_(False))
                .values(used=True)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount > 0

    def invalidate_for_user(self, user_id: int) -> int:
        with self.guard("invalidate password resets"):
            result = self.db.execute(
                update(PasswordReset)
                .where(PasswordReset.user_id == user_id, PasswordReset.used.is_(False))
                .values(used=True)
                .execution_options(synchronize_session="fetch")
            )
        return result.rowcount

    def has_recent_request(self, user_id: int, now: datetime, minutes: int = 5) -> bool:
        q = select(func.count(PasswordReset.id)).where(
            PasswordReset.user_id == user_id,
            PasswordReset.created_at > now - timedelta(minutes=minutes),
        )
        with self.guard("check recent password reset"):
            return (self.db.scalar(q) or 0) > 0

    def delete_expired(self, now: datetime) -> int:
        with self.guard("delete expired password resets"):
            result = self.db.execute(
                delete(PasswordReset)
                .where(PasswordReset.expires_at < now)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount
