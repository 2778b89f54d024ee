# tests/conftest.py
import os

# settings 는 import 시점에 읽히므로 storefront import 전에 설정
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

import re
import smtplib
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.db import Base, get_db
from storefront.core.deps import get_clock, get_mailer
from storefront.core.security import TokenService, hash_password
from storefront.main import app
from storefront.models.enums import UserRole, UserStatus
from storefront.models.user import User
from storefront.repositories.otp import OtpRepository
from storefront.repositories.password_resets import PasswordResetRepository
from storefront.repositories.users import UserRepository
from storefront.services.auth import AuthService
from storefront.services.notifications import NotificationService
from storefront.services.otp import OtpService
from storefront.services.users import UserService
from storefront.utils.clock import utcnow

PASSWORD = "P@ssw0rd1"


class RecordingMailer:
    """보낸 메일을 모아두는 가짜 mailer. fail=True 면 SMTP 에러를 흉내낸다."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, email):
        if self.fail:
            raise smtplib.SMTPException("smtp down")
        self.sent.append(email)

    def subjects(self):
        return [m.subject for m in self.sent]

    def last_code(self) -> str:
        for mail in reversed(self.sent):
            m = re.search(r"code is: (\d+)", mail.body)
            if m:
                return m.group(1)
        raise AssertionError("no code was mailed")

    def last_reset_token(self) -> str:
        for mail in reversed(self.sent):
            m = re.search(r"token=([0-9a-f]+)", mail.body)
            if m:
                return m.group(1)
        raise AssertionError("no reset link was mailed")


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def clock():
    return FrozenClock(utcnow())


@pytest.fixture
def tokens():
    return TokenService(secret="test-secret")


@pytest.fixture
def notifier(mailer):
    return NotificationService(mailer)


@pytest.fixture
def otp_service(db, notifier, clock):
    return OtpService(db, OtpRepository(db), notifier, clock=clock)


@pytest.fixture
def user_service(db, otp_service, notifier, clock):
    return UserService(db, UserRepository(db), otp_service, notifier, clock=clock)


@pytest.fixture
def auth_service(db, tokens, notifier, clock):
    return AuthService(db, UserRepository(db), PasswordResetRepository(db), tokens, notifier, clock=clock)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(email=None, password=PASSWORD, role=UserRole.CUSTOMER, status=UserStatus.ACTIVE) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@shop.com",
            password_hash=hash_password(password),
            first_name="Test",
            last_name="User",
            role=role,
            status=status,
            email_verified_at=utcnow() if status == UserStatus.ACTIVE else None,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def client(db, mailer, clock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD) -> dict:
        res = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['data']['accessToken']}"}

    return _login
