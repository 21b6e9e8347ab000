from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from levelup.core.config import get_settings

# Use bcrypt_sha256 to avoid bcrypt's 72-byte password limit while keeping bcrypt as the core KDF.
pwd_context = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")
settings = get_settings()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def create_access_token(
    subject: str,
    expires_minutes: Optional[int] = None,
    email: Optional[str] = None,
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRES_MINUTES
    )
    to_encode: Dict[str, Any] = {"exp": expire, "sub": subject}
    if email:
        # hosted-auth tokens carry the address too; lets get_current_user provision unknown users
        to_encode["email"] = email
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
