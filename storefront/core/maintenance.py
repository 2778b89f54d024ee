# storefront/core/maintenance.py
"""Periodic cleanup, run by an external scheduler (cron 등):

    python -m storefront.core.maintenance
"""

import logging
from typing import Dict

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.db import SessionLocal
from storefront.core.logging import configure_logging
from storefront.models import user  # noqa: F401  (relationship 대상 매퍼 등록)
from storefront.repositories.otp import OtpRepository
from storefront.repositories.password_resets import PasswordResetRepository
from storefront.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


def cleanup_expired(db: Session, clock: Clock = utcnow) -> Dict[str, int]:
    now = clock()
    try:
        otps = OtpRepository(db).delete_expired(now)
        resets = PasswordResetRepository(db).delete_expired(now)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("cleanup: %d otp rows, %d password reset rows deleted", otps, resets)
    return {"otp": otps, "password_resets": resets}


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    db = SessionLocal()
    try:
        cleanup_expired(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
