from levelup.models.base import Base
from levelup.models.chat import ChatMessage, ChatSession
from levelup.models.content import Category, Chapter, SharedChapter
from levelup.models.progress import UserProgress
from levelup.models.user import User

__all__ = [
    "Base",
    "User",
    "Category",
    "Chapter",
    "SharedChapter",
    "UserProgress",
    "ChatSession",
    "ChatMessage",
]
