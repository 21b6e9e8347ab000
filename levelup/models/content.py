from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from levelup.models.base import Base, TimestampMixin


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)

    chapters: Mapped[List["Chapter"]] = relationship(back_populates="category")


class Chapter(TimestampMixin, Base):
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    preview: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("categories.id"), index=True, nullable=True
    )
    chapter_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    spotify_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    try_this_week: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # lesson / book_summary
    content_type: Mapped[str] = mapped_column(String(32), nullable=False, default="lesson")
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reading_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    key_takeaways: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    audio_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    category: Mapped[Optional["Category"]] = relationship(back_populates="chapters")


class SharedChapter(TimestampMixin, Base):
    __tablename__ = "shared_chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    share_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    chapter_id: Mapped[int] = mapped_column(Integer, ForeignKey("chapters.id"), index=True, nullable=False)
    shared_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True, nullable=False)
