from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from levelup.core.config import get_settings
from levelup.core.db import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    settings = get_settings()
    db.execute(text("SELECT 1"))
    return {"ok": True, "app": settings.APP_NAME, "env": settings.ENV}
