# storefront/repositories/users.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import desc, select, update
from sqlalchemy.exc import IntegrityError

from storefront.core.errors import DuplicateEmail, UserNotFound
from storefront.models.enums import UserRole, UserStatus
from storefront.models.user import User
from storefront.repositories.base import Repository, paginate
from storefront.utils.clock import utcnow

# 사용자가 직접 바꿀 수 있는 필드 + 서비스에서 쓰는 내부 필드
UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "phone",
    "password_hash",
    "role",
    "status",
    "email_verified_at",
}


class UserRepository(Repository):
    def _live(self):
        return select(User).where(User.status != UserStatus.DELETED)

    def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            status=UserStatus.PENDING_VERIFICATION,
        )
        with self.guard("create user"):
            try:
                self.db.add(user)
                self.db.flush()
            except IntegrityError:
                # 가입은 요청의 첫 쓰기라 트랜잭션 전체를 되돌려도 됨
                self.db.rollback()
                raise DuplicateEmail()
        return user

    def find_by_id(self, user_id: int) -> Optional[User]:
        with self.guard("find user by id"):
            return self.db.execute(self._live().where(User.id == user_id)).scalar_one_or_none()

    def find_by_email(self, email: str) -> Optional[User]:
        with self.guard("find user by email"):
            return self.db.execute(self._live().where(User.email == email)).scalar_one_or_none()

    def get(self, user_id: int) -> User:
        user = self.find_by_id(user_id)
        if not user:
            raise UserNotFound()
        return user

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def update_fields(self, user_id: int, at: Optional[datetime] = None, **fields) -> User:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")

        user = self.get(user_id)
        with self.guard("update user"):
            for key, value in fields.items():
                setattr(user, key, value)
            user.updated_at = at or utcnow()
            self.db.flush()
        return user

    def update_last_login(self, user_id: int, at: Optional[datetime] = None) -> User:
        user = self.get(user_id)
        with self.guard("update last login"):
            user.last_login_at = at or utcnow()
            user.updated_at = user.last_login_at
            self.db.flush()
        return user

    def soft_delete(self, user_id: int, at: Optional[datetime] = None) -> None:
        with self.guard("soft delete user"):
            result = self.db.execute(
                update(User)
                .where(User.id == user_id, User.status != UserStatus.DELETED)
                .values(status=UserStatus.DELETED, updated_at=at or utcnow())
                .execution_options(synchronize_session="fetch")
            )
        if result.rowcount == 0:
            raise UserNotFound()

    def list(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> Tuple[List[User], int]:
        q = self._live()
        if role:
            q = q.where(User.role == role)
        if status:
            q = q.where(User.status == status)
        q = q.order_by(desc(User.created_at), desc(User.id))
        with self.guard("list users"):
            return paginate(self.db, q, page, limit)
