import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from levelup.api.deps import get_current_user, is_admin
from levelup.core.config import get_settings
from levelup.core.db import get_db
from levelup.core.security import create_access_token, hash_password, verify_password
from levelup.models.user import User
from levelup.schemas.auth import Token, UserCreate, UserPublic

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()
logger = logging.getLogger(__name__)


def _public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        is_admin=is_admin(user),
    )


@router.post("/register", response_model=UserPublic)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")

    try:
        user = User(
            email=email,
            hashed_password=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return _public(user)
    except Exception as e:
        db.rollback()
        logger.exception("Register failed")
        # In local/dev return error details for faster iteration
        if settings.ENV in ("local", "dev"):
            raise HTTPException(status_code=500, detail=f"Register failed: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    email = (form_data.username or "").lower()
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not user.hashed_password or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password"
        )
    token = create_access_token(subject=user.id, email=user.email)
    return Token(access_token=token)


@router.get("/user", response_model=UserPublic)
def me(current_user: User = Depends(get_current_user)):
    return _public(current_user)
