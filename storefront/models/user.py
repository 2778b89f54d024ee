from sqlalchemy import Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship

from storefront.core.db import Base
from storefront.models.enums import UserRole, UserStatus
from storefront.utils.clock import utcnow


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)

    role = Column(Enum(UserRole, native_enum=False, length=20), nullable=False, default=UserRole.CUSTOMER, index=True)
    # DELETED 는 soft delete 용 상태 (행은 남김)
    status = Column(
        Enum(UserStatus, native_enum=False, length=30),
        nullable=False,
        default=UserStatus.PENDING_VERIFICATION,
        index=True,
    )

    email_verified_at = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # ondelete=CASCADE 와 맞춰서 ORM 쪽도 함께 삭제
    otp_codes = relationship("OneTimeCode", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    password_resets = relationship("PasswordReset", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
