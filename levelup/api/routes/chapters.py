import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import asc, select
from sqlalchemy.orm import Session

from levelup.api.deps import get_current_user, require_admin
from levelup.core.config import get_settings
from levelup.core.db import get_db
from levelup.core.slugs import slugify
from levelup.models.base import utcnow
from levelup.models.content import Category, Chapter, SharedChapter
from levelup.models.progress import UserProgress
from levelup.models.user import User
from levelup.schemas.chat import OkOut
from levelup.schemas.content import ChapterCreate, ChapterOut, ChapterUpdate, ReorderRequest, ShareOut

router = APIRouter(prefix="/chapters", tags=["chapters"])
shared_router = APIRouter(prefix="/shared", tags=["chapters"])
logger = logging.getLogger(__name__)


def _chapter_out(c: Chapter) -> ChapterOut:
    return ChapterOut(
        id=c.id,
        slug=c.slug,
        title=c.title,
        preview=c.preview,
        content=c.content,
        duration=c.duration,
        category_id=c.category_id,
        chapter_number=c.chapter_number,
        youtube_url=c.youtube_url,
        spotify_url=c.spotify_url,
        try_this_week=c.try_this_week,
        content_type=c.content_type or "lesson",
        author=c.author,
        reading_time=c.reading_time,
        key_takeaways=c.key_takeaways,
        audio_url=c.audio_url,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _ensure_unique_slug(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
    q = select(Chapter.id).where(Chapter.slug == slug)
    if exclude_id is not None:
        q = q.where(Chapter.id != exclude_id)
    if db.execute(q).scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Chapter '{slug}' already exists")


def _ensure_category(db: Session, category_id: Optional[int]) -> None:
    if category_id is not None and not db.get(Category, category_id):
        raise HTTPException(status_code=400, detail=f"Category {category_id} not found")


@router.get("", response_model=List[ChapterOut])
def list_chapters(
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    db: Session = Depends(get_db),
):
    q = select(Chapter)
    if category_id is not None:
        q = q.where(Chapter.category_id == category_id)
    q = q.order_by(asc(Chapter.category_id), asc(Chapter.chapter_number), asc(Chapter.id))
    return [_chapter_out(c) for c in db.execute(q).scalars().all()]


@router.get("/{slug}", response_model=ChapterOut)
def get_chapter(slug: str, db: Session = Depends(get_db)):
    chapter = db.execute(select(Chapter).where(Chapter.slug == slug)).scalar_one_or_none()
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")
    return _chapter_out(chapter)


@router.post("", response_model=ChapterOut)
def create_chapter(
    payload: ChapterCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    slug = slugify(payload.slug or payload.title)
    if not slug:
        raise HTTPException(status_code=400, detail="Title must contain letters or digits")
    _ensure_unique_slug(db, slug)
    _ensure_category(db, payload.category_id)

    data = payload.model_dump(exclude={"slug"})
    chapter = Chapter(slug=slug, **data)
    db.add(chapter)
    db.commit()
    db.refresh(chapter)
    logger.info("created chapter %s", slug)
    return _chapter_out(chapter)


@router.post("/reorder", response_model=OkOut)
def reorder_chapters(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    for item in payload.items:
        chapter = db.get(Chapter, item.id)
        if not chapter:
            db.rollback()
            raise HTTPException(status_code=404, detail=f"Chapter {item.id} not found")
        chapter.chapter_number = item.sort_order
    db.commit()
    return OkOut()


@router.put("/{chapter_id}", response_model=ChapterOut)
def update_chapter(
    chapter_id: int,
    payload: ChapterUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    chapter = db.get(Chapter, chapter_id)
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")

    updates = payload.model_dump(exclude_unset=True)
    if updates.get("title") and not updates.get("slug"):
        updates["slug"] = updates["title"]
    if "slug" in updates:
        slug = slugify(updates["slug"] or "")
        if not slug:
            raise HTTPException(status_code=400, detail="Slug must contain letters or digits")
        _ensure_unique_slug(db, slug, exclude_id=chapter.id)
        updates["slug"] = slug
    if "category_id" in updates:
        _ensure_category(db, updates["category_id"])

    for key, value in updates.items():
        setattr(chapter, key, value)
    db.commit()
    db.refresh(chapter)
    return _chapter_out(chapter)


@router.delete("/{chapter_id}", response_model=OkOut)
def delete_chapter(
    chapter_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    chapter = db.get(Chapter, chapter_id)
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")
    # progress and share rows reference the chapter
    for row in db.execute(select(UserProgress).where(UserProgress.chapter_id == chapter_id)).scalars().all():
        db.delete(row)
    for row in db.execute(select(SharedChapter).where(SharedChapter.chapter_id == chapter_id)).scalars().all():
        db.delete(row)
    db.delete(chapter)
    db.commit()
    return OkOut()


@router.post("/{chapter_id}/share", response_model=ShareOut)
def share_chapter(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not db.get(Chapter, chapter_id):
        raise HTTPException(status_code=404, detail="Chapter not found")

    settings = get_settings()
    shared = SharedChapter(
        share_id=secrets.token_urlsafe(8),
        chapter_id=chapter_id,
        shared_by=current_user.id,
        expires_at=utcnow() + timedelta(days=max(1, settings.SHARE_TTL_DAYS)),
    )
    db.add(shared)
    db.commit()
    db.refresh(shared)
    return ShareOut(share_id=shared.share_id, expires_at=shared.expires_at)


@shared_router.get("/{share_id}", response_model=ChapterOut)
def get_shared_chapter(share_id: str, db: Session = Depends(get_db)):
    shared = db.execute(select(SharedChapter).where(SharedChapter.share_id == share_id)).scalar_one_or_none()
    if not shared or shared.expires_at <= utcnow():
        raise HTTPException(status_code=404, detail="Shared chapter not found")
    chapter = db.get(Chapter, shared.chapter_id)
    if not chapter:
        raise HTTPException(status_code=404, detail="Shared chapter not found")
    return _chapter_out(chapter)
