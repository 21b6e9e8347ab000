"""
Read-only team overview for admins: every user with their chapter progress and
chat activity, plus aggregate stats.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from levelup.api.deps import is_admin, require_admin
from levelup.core.db import get_db
from levelup.models.base import utcnow
from levelup.models.chat import ChatMessage, ChatSession
from levelup.models.content import Chapter
from levelup.models.progress import UserProgress
from levelup.models.user import User
from levelup.schemas.team import MemberEngagement, MemberProgress, TeamMemberOut, TeamStatsOut

router = APIRouter(prefix="/team", tags=["team"])

_ACTIVE_WINDOW = timedelta(days=7)


def _members(db: Session) -> List[TeamMemberOut]:
    since = utcnow() - _ACTIVE_WINDOW
    total_chapters = int(db.execute(select(func.count(Chapter.id))).scalar_one() or 0)

    completed: Dict[str, int] = defaultdict(int)
    last_seen: Dict[str, datetime] = {}

    def _seen(user_id: str, at: datetime) -> None:
        if at is not None and (user_id not in last_seen or at > last_seen[user_id]):
            last_seen[user_id] = at

    for p in db.execute(select(UserProgress)).scalars().all():
        if p.completed:
            completed[p.user_id] += 1
        _seen(p.user_id, p.updated_at)

    messages: Dict[str, int] = defaultdict(int)
    weekly: Dict[str, int] = defaultdict(int)
    rows = db.execute(
        select(ChatSession.user_id, ChatMessage.created_at)
        .join(ChatMessage, ChatMessage.session_id == ChatSession.id)
        .where(ChatMessage.role == "user")
    ).all()
    for user_id, created_at in rows:
        messages[user_id] += 1
        if created_at >= since:
            weekly[user_id] += 1
        _seen(user_id, created_at)

    out = []
    for u in db.execute(select(User).order_by(User.created_at, User.email)).scalars().all():
        _seen(u.id, u.updated_at)
        done = completed[u.id]
        out.append(
            TeamMemberOut(
                id=u.id,
                email=u.email,
                first_name=u.first_name,
                last_name=u.last_name,
                role="admin" if is_admin(u) else "member",
                joined_at=u.created_at,
                last_active=last_seen[u.id],
                progress=MemberProgress(
                    completed_chapters=done,
                    total_chapters=total_chapters,
                    percentage=round(done * 100.0 / total_chapters, 1) if total_chapters else 0.0,
                ),
                engagement=MemberEngagement(chat_messages=messages[u.id], weekly_activity=weekly[u.id]),
            )
        )
    return out


@router.get("/members", response_model=List[TeamMemberOut])
def team_members(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return _members(db)


@router.get("/stats", response_model=TeamStatsOut)
def team_stats(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    members = _members(db)
    since = utcnow() - _ACTIVE_WINDOW
    return TeamStatsOut(
        total_members=len(members),
        active_members=sum(1 for m in members if m.last_active >= since),
        average_progress=(
            round(sum(m.progress.percentage for m in members) / len(members), 1) if members else 0.0
        ),
        total_chapters_completed=sum(m.progress.completed_chapters for m in members),
    )
