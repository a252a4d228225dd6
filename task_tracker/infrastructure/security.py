from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from passlib.context import CryptContext

from ..application.ports import IPasswordHasher, ITokenService
from ..config import settings
from ..domain.errors import Unauthenticated

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__rounds=settings.BCRYPT_ROUNDS,
    bcrypt_sha256__truncate_error=False,
)


class PasswordHasher(IPasswordHasher):
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return pwd.verify(plain, hashed)


def create_access_token(sub: str, minutes: int | None = None) -> str:
    # в токене только id пользователя и время жизни, роль берём из БД
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(sub), "iat": now, "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Возвращает id пользователя (sub) из токена или кидает JWTError."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    sub = payload.get("sub")
    if not sub:
        raise JWTError("No subject")
    return sub


class TokenService(ITokenService):
    def issue(self, user_id: str) -> str:
        return create_access_token(user_id)

    def subject(self, token: str) -> str:
        try:
            return decode_token(token)
        except JWTError:
            raise Unauthenticated("Token invalid or expired")
