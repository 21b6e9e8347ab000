from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from levelup.core.config import get_settings

settings = get_settings()

_uri = settings.sqlalchemy_database_uri
_connect_args = {"check_same_thread": False} if _uri.startswith("sqlite") else {}

engine = create_engine(_uri, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    # for work that outlives the request-scoped session (e.g. streamed responses)
    return SessionLocal
