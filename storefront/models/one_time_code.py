# storefront/models/one_time_code.py
from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from storefront.core.db import Base
from storefront.models.enums import OtpType
from storefront.utils.clock import utcnow


class OneTimeCode(Base):
    __tablename__ = "otp_verifications"
    __table_args__ = (
        Index("ix_otp_user_type_created", "user_id", "type", "created_at"),
        # (user, type) 당 미사용 코드는 최대 1개
        Index(
            "uq_otp_active_per_user_type",
            "user_id",
            "type",
            unique=True,
            sqlite_where=text("used = 0"),
            postgresql_where=text("used = false"),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    otp_code = Column(String(12), nullable=False)
    type = Column(Enum(OtpType, native_enum=False, length=30), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="otp_codes")
