from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import asc, select
from sqlalchemy.orm import Session

from levelup.api.deps import get_current_user
from levelup.core.db import get_db
from levelup.models.base import utcnow
from levelup.models.content import Chapter
from levelup.models.progress import UserProgress
from levelup.models.user import User
from levelup.schemas.content import ProgressOut

router = APIRouter(prefix="/progress", tags=["progress"])


def _progress_list(db: Session, user: User) -> List[ProgressOut]:
    rows = db.execute(
        select(UserProgress).where(UserProgress.user_id == user.id).order_by(asc(UserProgress.chapter_id))
    ).scalars().all()
    return [ProgressOut(chapter_id=p.chapter_id, completed=bool(p.completed), completed_at=p.completed_at) for p in rows]


def _progress_row(db: Session, user: User, chapter_id: int) -> UserProgress:
    if not db.get(Chapter, chapter_id):
        raise HTTPException(status_code=404, detail="Chapter not found")
    row = db.execute(
        select(UserProgress).where(UserProgress.user_id == user.id, UserProgress.chapter_id == chapter_id)
    ).scalar_one_or_none()
    if not row:
        row = UserProgress(user_id=user.id, chapter_id=chapter_id, completed=False)
        db.add(row)
    return row


@router.get("", response_model=List[ProgressOut])
def get_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _progress_list(db, current_user)


@router.post("/{chapter_id}", response_model=List[ProgressOut])
def mark_complete(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = _progress_row(db, current_user, chapter_id)
    if not row.completed:
        row.completed = True
        row.completed_at = utcnow()
    db.commit()
    return _progress_list(db, current_user)


@router.delete("/{chapter_id}", response_model=List[ProgressOut])
def mark_incomplete(
    chapter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = _progress_row(db, current_user, chapter_id)
    row.completed = False
    row.completed_at = None
    db.commit()
    return _progress_list(db, current_user)
