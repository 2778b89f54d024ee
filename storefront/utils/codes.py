# storefront/utils/codes.py
import re
import secrets
import string


def generate_otp(length: int = 6) -> str:
    # 자리마다 CSPRNG 로 0~9 균등 추출
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_reset_token() -> str:
    """256-bit 랜덤 hex (64자)."""
    return secrets.token_hex(32)


def slugify(name: str) -> str:
    s = name.lower().strip()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s_-]+", "-", s)
    return s.strip("-")
