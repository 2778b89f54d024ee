# storefront/services/notifications.py
"""
Outbound email for the account lifecycle:
- OTP codes (email verification / password reset)
- welcome mail after verification
- login alert
- password reset link

Bodies are plain text. Delivery goes through a mailer: SMTP when configured,
otherwise the message is written to the log (local development).
"""

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import Optional, Protocol

from storefront.core.config import settings
from storefront.core.errors import NotificationError
from storefront.models.enums import OtpType
from storefront.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    body: str


class Mailer(Protocol):
    def send(self, email: OutgoingEmail) -> None: ...


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender: str = "noreply@ecommerce.com",
        starttls: bool = True,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.starttls = starttls
        self.timeout = timeout

    def send(self, email: OutgoingEmail) -> None:
        msg = EmailMessage()
        msg["Subject"] = email.subject
        msg["From"] = self.sender
        msg["To"] = email.to
        msg.set_content(email.body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.starttls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)


class LogMailer:
    """SMTP 미설정 시 개발용: 메일 내용을 로그로 출력."""

    def send(self, email: OutgoingEmail) -> None:
        logger.info("=== EMAIL (dev) ===\nTo: %s\nSubject: %s\n%s", email.to, email.subject, email.body)


def build_mailer() -> Mailer:
    if settings.SMTP_HOST:
        return SmtpMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender=settings.SMTP_FROM,
            starttls=settings.SMTP_STARTTLS,
        )
    return LogMailer()


OTP_SUBJECTS = {
    OtpType.EMAIL_VERIFICATION: "Verify your email address",
    OtpType.PASSWORD_RESET: "Your password reset code",
}


class NotificationService:
    def __init__(self, mailer: Mailer, otp_expire_minutes: int = 10):
        self.mailer = mailer
        self.otp_expire_minutes = otp_expire_minutes

    def _deliver(self, email: OutgoingEmail, kind: str) -> None:
        try:
            self.mailer.send(email)
        except Exception as exc:
            # mailer 종류와 상관없이 발송 실패는 NotificationError 하나로
            logger.error("failed to send %s email to user: %s", kind, exc)
            raise NotificationError(f"Failed to send {kind} notification") from exc

    def send_otp(self, user: User, code: str, purpose: OtpType) -> None:
        body = (
            f"Hi {user.first_name},\n\n"
            f"Your verification code is: {code}\n"
            f"This code expires in {self.otp_expire_minutes} minutes.\n\n"
            "If you did not request this, you can ignore this email."
        )
        self._deliver(OutgoingEmail(to=user.email, subject=OTP_SUBJECTS[purpose], body=body), "otp")

    def send_welcome(self, user: User) -> None:
        body = (
            f"Welcome, {user.first_name}!\n\n"
            "Your email has been verified and your account is now active."
        )
        self._deliver(OutgoingEmail(to=user.email, subject="Welcome!", body=body), "welcome")

    def send_login_alert(
        self,
        user: User,
        ip_address: Optional[str],
        user_agent: Optional[str],
        at: datetime,
    ) -> None:
        body = (
            f"Hi {user.first_name},\n\n"
            "A new sign-in to your account was detected.\n"
            f"Time (UTC): {at.isoformat(timespec='seconds')}\n"
            f"IP address: {ip_address or 'unknown'}\n"
            f"Device: {user_agent or 'unknown'}\n\n"
            "If this wasn't you, reset your password immediately."
        )
        self._deliver(OutgoingEmail(to=user.email, subject="New login to your account", body=body), "login")

    def send_password_reset(self, user: User, reset_url: str) -> None:
        body = (
            f"Hi {user.first_name},\n\n"
            "We received a request to reset your password. Use the link below within one hour:\n"
            f"{reset_url}\n\n"
            "If you did not request a reset, you can ignore this email."
        )
        self._deliver(OutgoingEmail(to=user.email, subject="Reset your password", body=body), "password reset")
