from __future__ import annotations

import logging
from typing import Dict, List

from levelup.client.api import ChatApi
from levelup.client.types import Message, is_transient

logger = logging.getLogger(__name__)


class HistoryCache:
    """Client copy of each session's message history; the server stays authoritative."""

    def __init__(self, api: ChatApi):
        self.api = api
        self._messages: Dict[str, List[Message]] = {}
        self.fetch_count: Dict[str, int] = {}

    def peek(self, session_id: str) -> List[Message]:
        return list(self._messages.get(session_id, []))

    def record(self, session_id: str, messages: List[Message]) -> None:
        """Append locally; the next successful fetch replaces it."""
        self._messages.setdefault(session_id, []).extend(messages)

    async def get(self, session_id: str) -> List[Message]:
        if session_id not in self._messages:
            await self._fetch(session_id)
        return self.peek(session_id)

    async def invalidate(self, session_id: str) -> List[Message]:
        """Refetch; the cached list is only replaced once the server answers."""
        await self._fetch(session_id)
        return self.peek(session_id)

    async def _fetch(self, session_id: str) -> None:
        if not session_id or is_transient(session_id):
            # not on the server yet
            self._messages.setdefault(session_id, [])
            return
        self.fetch_count[session_id] = self.fetch_count.get(session_id, 0) + 1
        try:
            messages = await self.api.get_history(session_id)
        except Exception:
            # keep the previous list until a fetch succeeds
            logger.exception("Error fetching chat history for %s", session_id)
            return
        self._messages[session_id] = messages
