from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from levelup.core.config import get_settings
from levelup.core.db import get_db
from levelup.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
settings = get_settings()


def _user_from_token(db: Session, token: str) -> Optional[User]:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            # hosted-auth tokens carry an audience we don't pin
            options={"verify_aud": False},
        )
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None

    user = db.get(User, user_id)
    if user:
        return user

    # First request from a user that signed up with the hosted auth provider: provision a row.
    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None
    user = User(id=str(user_id), email=email.lower(), hashed_password="")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_current_user(
    db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)
) -> User:
    user = _user_from_token(db, token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def is_admin(user: User) -> bool:
    return bool(user.is_admin) or (user.email or "").lower() in settings.ADMIN_EMAILS


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
