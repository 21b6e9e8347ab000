from typing import List, Optional

from pydantic import BaseModel


class AnalyticsOut(BaseModel):
    total_users: int
    total_chapters: int
    completed_chapters: int
    total_chat_sessions: int
    active_chats: int


class ChapterStat(BaseModel):
    chapter_id: int
    title: str
    category_title: Optional[str]
    started: int
    completions: int
    completion_rate: float


class CategoryStat(BaseModel):
    category_id: int
    title: str
    total_chapters: int
    total_completions: int
    total_users: int


class ContentAnalyticsOut(BaseModel):
    chapter_stats: List[ChapterStat]
    category_stats: List[CategoryStat]
    most_popular_chapter: Optional[ChapterStat] = None
    total_engagement: int = 0
