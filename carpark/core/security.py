from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext
from carpark.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
REFRESH_TOKEN_DAYS = 30


def _encode(claims: dict, expires_at: datetime) -> str:
    return jwt.encode({**claims, "exp": expires_at}, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(subject: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return _encode({"sub": str(subject), "role": role, "type": "access"}, expire)


def create_refresh_token(subject: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=REFRESH_TOKEN_DAYS)
    return _encode({"sub": str(subject), "type": "refresh"}, expire)


def decode_token(token: str, expected_type: str = "access") -> Optional[str]:
    """Returns user ID (sub claim) or None if the token is invalid, expired or of the wrong type."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type", "access") != expected_type:
        return None
    return payload.get("sub")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    # Guest accounts created at checkout have no password
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)
