from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # the team dashboard reads camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MemberProgress(_CamelModel):
    completed_chapters: int
    total_chapters: int
    percentage: float


class MemberEngagement(_CamelModel):
    chat_messages: int
    weekly_activity: int


class TeamMemberOut(_CamelModel):
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str  # admin | member
    joined_at: datetime
    last_active: datetime
    progress: MemberProgress
    engagement: MemberEngagement


class TeamStatsOut(_CamelModel):
    total_members: int
    active_members: int
    average_progress: float
    total_chapters_completed: int
