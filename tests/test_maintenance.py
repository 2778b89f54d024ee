# tests/test_maintenance.py
from sqlalchemy import select

from storefront.core.maintenance import cleanup_expired
from storefront.models.enums import OtpType, UserStatus
from storefront.models.one_time_code import OneTimeCode
from storefront.models.password_reset import PasswordReset


def test_cleanup_deletes_expired_codes_and_reset_tokens(db, otp_service, auth_service, make_user, clock):
    old = make_user(email="old@x.com", status=UserStatus.PENDING_VERIFICATION)
    fresh = make_user(email="fresh@x.com", status=UserStatus.PENDING_VERIFICATION)

    otp_service.issue(old, OtpType.EMAIL_VERIFICATION)
    auth_service.create_password_reset_token("old@x.com")

    # otp 는 10분, reset token 은 60분
    clock.advance(minutes=55)
    otp_service.issue(fresh, OtpType.EMAIL_VERIFICATION)
    auth_service.create_password_reset_token("fresh@x.com")

    clock.advance(minutes=6)
    assert cleanup_expired(db, clock) == {"otp": 1, "password_resets": 1}

    assert db.execute(select(OneTimeCode.user_id)).scalars().all() == [fresh.id]
    assert db.execute(select(PasswordReset.user_id)).scalars().all() == [fresh.id]


def test_cleanup_with_nothing_expired(db, otp_service, make_user, clock):
    otp_service.issue(make_user(status=UserStatus.PENDING_VERIFICATION), OtpType.EMAIL_VERIFICATION)
    assert cleanup_expired(db, clock) == {"otp": 0, "password_resets": 0}
    assert len(db.execute(select(OneTimeCode)).scalars().all()) == 1
