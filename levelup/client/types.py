from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

TRANSIENT_PREFIX = "temp-"
DEFAULT_SESSION_NAME = "New Chat"


@dataclass
class ChatSession:
    id: str
    name: str
    summary: str = ""

    @property
    def transient(self) -> bool:
        return is_transient(self.id)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ChatSession":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or DEFAULT_SESSION_NAME),
            summary=str(data.get("summary") or ""),
        )


@dataclass
class Message:
    role: str  # user/assistant
    content: str
    timestamp: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=str(data.get("role") or ""),
            content=str(data.get("content") or ""),
            timestamp=str(data.get("timestamp") or ""),
        )

    def to_json(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


def is_transient(session_id: str) -> bool:
    return (session_id or "").startswith(TRANSIENT_PREFIX)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
