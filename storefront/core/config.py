# storefront/core/config.py
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"

    JWT_SECRET: str = "change-this-secret"
    JWT_ALG: str = "HS256"
    JWT_ISSUER: str = "ecommerce-api"
    JWT_AUDIENCE: str = "ecommerce-client"

    # 7일짜리 access token 은 의도된 기본값 (DESIGN.md 참고)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 10
    OTP_COOLDOWN_MINUTES: int = 1
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    PASSWORD_RESET_COOLDOWN_MINUTES: int = 5

    BCRYPT_ROUNDS: int = 12

    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    FRONTEND_URL: str = "http://localhost:3000"

    # SMTP 를 안 쓰면 빈값 -> 로그로 메일 내용 출력
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "noreply@ecommerce.com"
    SMTP_STARTTLS: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
