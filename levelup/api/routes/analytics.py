from collections import defaultdict
from datetime import timedelta
from typing import Dict, Set

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from levelup.api.deps import require_admin
from levelup.core.db import get_db
from levelup.models.base import utcnow
from levelup.models.chat import ChatSession
from levelup.models.content import Category, Chapter
from levelup.models.progress import UserProgress
from levelup.models.user import User
from levelup.schemas.analytics import AnalyticsOut, CategoryStat, ChapterStat, ContentAnalyticsOut

router = APIRouter(prefix="/analytics", tags=["analytics"])

_ACTIVE_WINDOW = timedelta(days=7)


def _count(db: Session, q) -> int:
    return int(db.execute(q).scalar_one() or 0)


@router.get("", response_model=AnalyticsOut)
def overview(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    since = utcnow() - _ACTIVE_WINDOW
    return AnalyticsOut(
        total_users=_count(db, select(func.count(User.id))),
        total_chapters=_count(db, select(func.count(Chapter.id))),
        completed_chapters=_count(
            db, select(func.count(UserProgress.id)).where(UserProgress.completed.is_(True))
        ),
        total_chat_sessions=_count(db, select(func.count(ChatSession.id))),
        active_chats=_count(db, select(func.count(ChatSession.id)).where(ChatSession.updated_at >= since)),
    )


@router.get("/content", response_model=ContentAnalyticsOut)
def content_analytics(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    categories = {c.id: c for c in db.execute(select(Category)).scalars().all()}
    chapters = db.execute(select(Chapter)).scalars().all()
    progress = db.execute(select(UserProgress)).scalars().all()

    started: Dict[int, int] = defaultdict(int)
    completed: Dict[int, int] = defaultdict(int)
    for p in progress:
        started[p.chapter_id] += 1
        if p.completed:
            completed[p.chapter_id] += 1

    chapter_stats = []
    for ch in chapters:
        if not started[ch.id]:
            continue
        cat = categories.get(ch.category_id) if ch.category_id is not None else None
        chapter_stats.append(
            ChapterStat(
                chapter_id=ch.id,
                title=ch.title,
                category_title=cat.title if cat else None,
                started=started[ch.id],
                completions=completed[ch.id],
                completion_rate=round(completed[ch.id] * 100.0 / started[ch.id], 1),
            )
        )
    chapter_stats.sort(key=lambda s: (-s.completions, s.chapter_id))

    chapter_category = {ch.id: ch.category_id for ch in chapters}
    users_by_category: Dict[int, Set[str]] = defaultdict(set)
    for p in progress:
        cat_id = chapter_category.get(p.chapter_id)
        if cat_id is not None:
            users_by_category[cat_id].add(p.user_id)

    category_stats = []
    for cat in categories.values():
        ids = [ch.id for ch in chapters if ch.category_id == cat.id]
        category_stats.append(
            CategoryStat(
                category_id=cat.id,
                title=cat.title,
                total_chapters=len(ids),
                total_completions=sum(completed[i] for i in ids),
                total_users=len(users_by_category[cat.id]),
            )
        )
    category_stats.sort(key=lambda s: (-s.total_completions, s.category_id))

    return ContentAnalyticsOut(
        chapter_stats=chapter_stats,
        category_stats=category_stats,
        most_popular_chapter=chapter_stats[0] if chapter_stats else None,
        total_engagement=sum(s.completions for s in chapter_stats),
    )
