import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import asc, func, select
from sqlalchemy.orm import Session

from levelup.api.deps import get_current_user, require_admin
from levelup.core.db import get_db
from levelup.core.slugs import slugify
from levelup.models.content import Category, Chapter
from levelup.models.progress import UserProgress
from levelup.models.user import User
from levelup.schemas.chat import OkOut
from levelup.schemas.content import CategoryCreate, CategoryOut, CategoryProgressOut, ReorderRequest

router = APIRouter(prefix="/categories", tags=["categories"])
logger = logging.getLogger(__name__)


def _category_out(c: Category) -> CategoryOut:
    return CategoryOut(
        id=c.id,
        slug=c.slug,
        title=c.title,
        description=c.description,
        icon_type=c.icon_type,
        sort_order=c.sort_order or 0,
        created_at=c.created_at,
    )


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    rows = db.execute(select(Category).order_by(asc(Category.sort_order), asc(Category.id))).scalars().all()
    return [_category_out(c) for c in rows]


@router.post("", response_model=CategoryOut)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    slug = slugify(payload.title)
    if not slug:
        raise HTTPException(status_code=400, detail="Title must contain letters or digits")
    if db.execute(select(Category.id).where(Category.slug == slug)).scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Category '{slug}' already exists")

    category = Category(
        slug=slug,
        title=payload.title,
        description=payload.description,
        icon_type=payload.icon_type,
        sort_order=payload.sort_order or 0,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("created category %s", slug)
    return _category_out(category)


@router.post("/reorder", response_model=OkOut)
def reorder_categories(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    for item in payload.items:
        category = db.get(Category, item.id)
        if not category:
            db.rollback()
            raise HTTPException(status_code=404, detail=f"Category {item.id} not found")
        category.sort_order = item.sort_order
    db.commit()
    return OkOut()


@router.get("/{category_id}/progress", response_model=CategoryProgressOut)
def category_progress(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not db.get(Category, category_id):
        raise HTTPException(status_code=404, detail="Category not found")

    total = db.execute(
        select(func.count(Chapter.id)).where(Chapter.category_id == category_id)
    ).scalar_one()
    completed = db.execute(
        select(func.count(UserProgress.id))
        .join(Chapter, UserProgress.chapter_id == Chapter.id)
        .where(
            UserProgress.user_id == current_user.id,
            UserProgress.completed.is_(True),
            Chapter.category_id == category_id,
        )
    ).scalar_one()
    return CategoryProgressOut(category_id=category_id, completed=int(completed or 0), total=int(total or 0))
