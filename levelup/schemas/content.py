from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    icon_type: Optional[str] = None
    sort_order: int = 0


class CategoryOut(BaseModel):
    id: int
    slug: str
    title: str
    description: Optional[str]
    icon_type: Optional[str]
    sort_order: int
    created_at: datetime


class SortOrderItem(BaseModel):
    id: int
    sort_order: int


class ReorderRequest(BaseModel):
    items: List[SortOrderItem] = Field(default_factory=list)


class ChapterCreate(BaseModel):
    title: str = Field(min_length=1)
    slug: Optional[str] = None
    preview: Optional[str] = None
    content: Optional[str] = None
    duration: Optional[str] = None
    category_id: Optional[int] = None
    chapter_number: Optional[int] = None
    youtube_url: Optional[str] = None
    spotify_url: Optional[str] = None
    try_this_week: Optional[str] = None
    content_type: str = "lesson"  # lesson | book_summary
    author: Optional[str] = None
    reading_time: Optional[int] = None
    key_takeaways: Optional[List[str]] = None
    audio_url: Optional[str] = None


class ChapterUpdate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    preview: Optional[str] = None
    content: Optional[str] = None
    duration: Optional[str] = None
    category_id: Optional[int] = None
    chapter_number: Optional[int] = None
    youtube_url: Optional[str] = None
    spotify_url: Optional[str] = None
    try_this_week: Optional[str] = None
    content_type: Optional[str] = None
    author: Optional[str] = None
    reading_time: Optional[int] = None
    key_takeaways: Optional[List[str]] = None
    audio_url: Optional[str] = None


class ChapterOut(BaseModel):
    id: int
    slug: str
    title: str
    preview: Optional[str]
    content: Optional[str]
    duration: Optional[str]
    category_id: Optional[int]
    chapter_number: Optional[int]
    youtube_url: Optional[str]
    spotify_url: Optional[str]
    try_this_week: Optional[str]
    content_type: str
    author: Optional[str]
    reading_time: Optional[int]
    key_takeaways: Optional[List[str]]
    audio_url: Optional[str]
    created_at: datetime
    updated_at: datetime


class ShareOut(BaseModel):
    share_id: str
    expires_at: datetime


class ProgressOut(BaseModel):
    chapter_id: int
    completed: bool
    completed_at: Optional[datetime]


class CategoryProgressOut(BaseModel):
    category_id: int
    completed: int
    total: int
