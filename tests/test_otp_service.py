# tests/test_otp_service.py
import pytest
from sqlalchemy import select

from storefront.core.errors import InvalidOtp, NotificationError, OtpAlreadyUsed, OtpExpired, TooManyRequests
from storefront.models.enums import OtpType, UserStatus
from storefront.models.one_time_code import OneTimeCode
from storefront.repositories.otp import OtpRepository
from storefront.services.otp import OtpService


def _unused_codes(db, user_id):
    q = select(OneTimeCode).where(OneTimeCode.user_id == user_id, OneTimeCode.used.is_(False))
    return db.execute(q).scalars().all()


def test_issued_code_is_six_digits_and_mailed(otp_service, make_user, mailer):
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    otp_service.issue(user, OtpType.EMAIL_VERIFICATION)

    code = mailer.last_code()
    assert len(code) == 6 and code.isdigit() and code.isascii()
    assert mailer.subjects() == ["Verify your email address"]


def test_code_verifies_once_then_reports_already_used(otp_service, make_user, mailer):
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    otp_service.issue(user, OtpType.EMAIL_VERIFICATION)
    code = mailer.last_code()

    otp_service.verify(user.id, code, OtpType.EMAIL_VERIFICATION)
    with pytest.raises(OtpAlreadyUsed):
        otp_service.verify(user.id, code, OtpType.EMAIL_VERIFICATION)


def test_code_after_expiry_is_expired_not_invalid(otp_service, make_user, mailer, clock):
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    otp_service.issue(user, OtpType.EMAIL_VERIFICATION)
    code = mailer.last_code()

    clock.advance(minutes=10, seconds=1)
    with pytest.raises(OtpExpired):
        otp_service.verify(user.id, code, OtpType.EMAIL_VERIFICATION)


def test_wrong_code_is_invalid(db, notifier, clock, make_user):
    service = OtpService(db, OtpRepository(db), notifier, clock=clock, code_generator=lambda n: "111111")
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    service.issue(user, OtpType.EMAIL_VERIFICATION)

    with pytest.raises(InvalidOtp):
        service.verify(user.id, "222222", OtpType.EMAIL_VERIFICATION)


def test_wrong_code_after_expiry_is_still_invalid(db, notifier, clock, make_user):
    service = OtpService(db, OtpRepository(db), notifier, clock=clock, code_generator=lambda n: "111111")
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    service.issue(user, OtpType.EMAIL_VERIFICATION)

    clock.advance(minutes=11)
    with pytest.raises(InvalidOtp):
        service.verify(user.id, "222222", OtpType.EMAIL_VERIFICATION)
    with pytest.raises(OtpExpired):
        service.verify(user.id, "111111", OtpType.EMAIL_VERIFICATION)


def test_new_code_invalidates_previous_one(db, notifier, clock, make_user):
    codes = iter(["111111", "222222"])
    service = OtpService(db, OtpRepository(db), notifier, clock=clock, code_generator=lambda n: next(codes))
    user = make_user(status=UserStatus.PENDING_VERIFICATION)

    service.issue(user, OtpType.EMAIL_VERIFICATION)
    clock.advance(minutes=2)
    service.issue(user, OtpType.EMAIL_VERIFICATION)

    with pytest.raises(InvalidOtp):
        service.verify(user.id, "111111", OtpType.EMAIL_VERIFICATION)
    service.verify(user.id, "222222", OtpType.EMAIL_VERIFICATION)


def test_codes_of_different_purposes_are_independent(db, otp_service, make_user, mailer):
    user = make_user()
    otp_service.issue(user, OtpType.EMAIL_VERIFICATION)
    verification = mailer.last_code()
    otp_service.issue(user, OtpType.PASSWORD_RESET)

    assert len(_unused_codes(db, user.id)) == 2
    with pytest.raises(InvalidOtp):
        otp_service.verify(user.id, verification, OtpType.PASSWORD_RESET)


def test_cooldown_rejects_second_request_within_a_minute(otp_service, make_user, clock):
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    otp_service.issue(user, OtpType.EMAIL_VERIFICATION)

    clock.advance(seconds=30)
    with pytest.raises(TooManyRequests):
        otp_service.issue(user, OtpType.EMAIL_VERIFICATION)

    clock.advance(seconds=31)
    otp_service.issue(user, OtpType.EMAIL_VERIFICATION)


def test_racing_insert_is_rejected_and_leaves_one_valid_code(db, notifier, clock, make_user, monkeypatch):
    repo = OtpRepository(db)
    service = OtpService(db, repo, notifier, clock=clock)
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    service.issue(user, OtpType.EMAIL_VERIFICATION)
    clock.advance(minutes=2)

    # 다른 요청이 invalidate 와 insert 사이에 끼어든 상황: 이쪽 invalidate 가 아무것도 못 바꿈
    monkeypatch.setattr(repo, "invalidate_for_user", lambda *a, **kw: 0)
    with pytest.raises(TooManyRequests):
        service.issue(user, OtpType.EMAIL_VERIFICATION)

    assert len(_unused_codes(db, user.id)) == 1


def test_delivery_failure_propagates(otp_service, make_user, mailer):
    user = make_user(status=UserStatus.PENDING_VERIFICATION)
    mailer.fail = True
    with pytest.raises(NotificationError):
        otp_service.issue(user, OtpType.EMAIL_VERIFICATION)


def test_cleanup_removes_only_expired_rows(db, otp_service, make_user, clock):
    first = make_user(status=UserStatus.PENDING_VERIFICATION)
    second = make_user(status=UserStatus.PENDING_VERIFICATION)
    otp_service.issue(first, OtpType.EMAIL_VERIFICATION)
    clock.advance(minutes=5)
    otp_service.issue(second, OtpType.EMAIL_VERIFICATION)

    clock.advance(minutes=6)
    assert otp_service.cleanup_expired() == 1
    remaining = db.execute(select(OneTimeCode.user_id)).scalars().all()
    assert remaining == [second.id]


def test_unexpected_mailer_error_becomes_notification_error(otp_service, make_user, mailer, monkeypatch):
    def broken(email):
        raise RuntimeError("template missing")

    monkeypatch.setattr(mailer, "send", broken)
    with pytest.raises(NotificationError):
        otp_service.issue(make_user(status=UserStatus.PENDING_VERIFICATION), OtpType.EMAIL_VERIFICATION)
