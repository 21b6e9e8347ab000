import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select
from sqlalchemy.orm import Session

from levelup.api.router import api_router
from levelup.core.config import get_settings
from levelup.core.db import SessionLocal
from levelup.models.content import Category
from levelup.scripts.seed_content import seed_default_content

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.on_event("startup")
def seed_default_data():
    # Local/dev convenience: ensure the default catalog exists
    if settings.ENV not in ("local", "dev"):
        return

    db: Session = SessionLocal()
    try:
        existing_any = db.execute(select(Category.id).limit(1)).scalar_one_or_none()
        if existing_any:
            return
        added = seed_default_content(db)
        logger.info("seeded default content rows=%s", added)
    finally:
        db.close()
