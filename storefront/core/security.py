from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.core.config import settings


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: str
    expires_at: datetime


class SecurityManager:
    """Password hashing and the storefront's bearer tokens.

    Tokens carry the user id in ``sub`` and the role in ``role``; anything
    missing either claim is treated like a bad signature.
    """

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def token_lifetime() -> timedelta:
        return timedelta(minutes=settings.auth.access_token_expires)

    @staticmethod
    def issue_access_token(user_id: str, role: str, lifetime: timedelta | None = None) -> str:
        expire = datetime.now(timezone.utc) + (lifetime or SecurityManager.token_lifetime())
        claims = {"sub": user_id, "role": role, "exp": expire}
        return jwt.encode(claims, settings.auth.secret_key, algorithm=settings.auth.algorithm)

    @staticmethod
    def decode_access_token(token: str) -> TokenClaims | None:
        try:
            payload = jwt.decode(
                token,
                settings.auth.secret_key,
                algorithms=[settings.auth.algorithm],
            )
        except JWTError:
            return None

        user_id = payload.get("sub")
        role = payload.get("role")
        if not isinstance(user_id, str) or not user_id or not isinstance(role, str):
            return None
        return TokenClaims(
            user_id=user_id,
            role=role,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


security_manager = SecurityManager()
