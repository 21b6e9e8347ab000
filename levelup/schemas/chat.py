from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatSessionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatSessionCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # `sessionId` kept for clients that only read the acknowledgment key
    session_id: str = Field(serialization_alias="sessionId")
    id: str
    name: str
    summary: str


class ChatSessionRename(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class ChatSessionOut(BaseModel):
    id: str
    name: str
    summary: str


class ChatMessageOut(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class TranscriptMessage(BaseModel):
    role: str
    content: str
    timestamp: Optional[str] = None


class GenerateNameRequest(BaseModel):
    messages: List[TranscriptMessage] = Field(default_factory=list)


class GenerateNameOut(BaseModel):
    name: str


class ChatStreamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)


class ChatReplyOut(BaseModel):
    response: str


class OkOut(BaseModel):
    success: bool = True
