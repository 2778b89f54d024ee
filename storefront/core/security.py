from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from storefront.core.config import settings
from storefront.core.errors import InternalError, InvalidToken, TokenExpired
from storefront.models.enums import UserRole

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # 깨진 해시는 불일치로 취급
        return False


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    role: UserRole
    type: str


class TokenService:
    """Signs and verifies HS256 access/refresh tokens.

    The token type is embedded as a claim but deliberately *not* checked
    here; callers decide which type they accept.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "ecommerce-api",
        audience: str = "ecommerce-client",
        access_ttl: timedelta = timedelta(days=7),
        refresh_ttl: timedelta = timedelta(days=30),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _require_secret(self) -> str:
        if not self.secret:
            raise InternalError("JWT signing secret is not configured")
        return self.secret

    def _issue(self, user_id: int, email: str, role: UserRole, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": UserRole(role).value,
            "type": token_type,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._require_secret(), algorithm=self.algorithm)

    def issue_access_token(self, user_id: int, email: str, role: UserRole) -> str:
        return self._issue(user_id, email, role, ACCESS, self.access_ttl)

    def issue_refresh_token(self, user_id: int, email: str, role: UserRole) -> str:
        return self._issue(user_id, email, role, REFRESH, self.refresh_ttl)

    def verify(self, token: str) -> TokenClaims:
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise InvalidToken()

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                email=payload["email"],
                role=UserRole(payload["role"]),
                type=payload["type"],
            )
        except (KeyError, TypeError, ValueError):
            raise InvalidToken("Invalid token payload")


def build_token_service(secret: Optional[str] = None) -> TokenService:
    return TokenService(
        secret=settings.JWT_SECRET if secret is None else secret,
        algorithm=settings.JWT_ALG,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )
