"""
Session list and selection, kept consistent with the server.

Every mutation is followed by a refetch of `/api/chat/sessions`; the one local
edit is the optimistic placeholder `create` inserts, which is either replaced by
the refetched list or removed again on failure.
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Callable, List, Optional

from levelup.client.api import ChatApi
from levelup.client.notify import DESTRUCTIVE, Notification, Notifier
from levelup.client.types import DEFAULT_SESSION_NAME, TRANSIENT_PREFIX, ChatSession, is_transient

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def new_session_id() -> str:
    """`session-<epoch ms>-<9 base36 chars>`"""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"session-{int(time.time() * 1000)}-{suffix}"


class SessionStore:
    def __init__(
        self,
        api: ChatApi,
        notify: Notifier,
        *,
        id_factory: Callable[[], str] = new_session_id,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.api = api
        self.notify = notify
        self.id_factory = id_factory
        self.on_change = on_change
        self.sessions: List[ChatSession] = []
        self.selected_id = ""

    @property
    def selected(self) -> Optional[ChatSession]:
        return self.find(self.selected_id)

    def find(self, session_id: str) -> Optional[ChatSession]:
        return next((s for s in self.sessions if s.id == session_id), None)

    def select(self, session_id: str) -> None:
        if session_id != self.selected_id:
            self.selected_id = session_id
            self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _error(self, description: str) -> None:
        self.notify(Notification("Error", description, DESTRUCTIVE))

    async def load_sessions(self) -> bool:
        try:
            sessions = await self.api.list_sessions()
        except Exception:
            # keep the stale list rather than flashing an empty one
            logger.exception("Failed to load chat sessions")
            self._error("Failed to load chat sessions. Please refresh the page.")
            return False
        self.sessions = sessions
        if sessions and self.find(self.selected_id) is None:
            self.selected_id = sessions[0].id
        self._changed()
        return True

    async def create_session(self) -> Optional[str]:
        new_id = self.id_factory()
        placeholder = ChatSession(id=f"{TRANSIENT_PREFIX}{new_id}", name=DEFAULT_SESSION_NAME, summary="")
        self.sessions.insert(0, placeholder)
        self.selected_id = placeholder.id
        self._changed()

        try:
            assigned = await self.api.create_session(new_id)
            sessions = await self.api.list_sessions()
        except Exception:
            logger.exception("Failed to create new chat session")
            self.sessions = [s for s in self.sessions if not is_transient(s.id)]
            self.selected_id = self.sessions[0].id if self.sessions else ""
            self._changed()
            self._error("Failed to create new chat session. Please try again.")
            return None

        self.sessions = sessions
        real = self.find(assigned) or self._correlate(sessions, new_id)
        if real is not None:
            self.selected_id = real.id
        elif sessions:
            self.selected_id = sessions[0].id
        else:
            self.selected_id = ""
        self._changed()
        return self.selected_id or None

    @staticmethod
    def _correlate(sessions: List[ChatSession], new_id: str) -> Optional[ChatSession]:
        # servers that don't echo ids: match on the timestamp fragment
        parts = new_id.split("-")
        fragment = parts[1] if len(parts) > 1 else new_id
        return next((s for s in sessions if fragment and fragment in s.id), None)

    async def delete_session(self, session_id: str) -> bool:
        if is_transient(session_id):
            # never reached the server
            self.sessions = [s for s in self.sessions if s.id != session_id]
            if self.selected_id == session_id:
                self.selected_id = self.sessions[0].id if self.sessions else ""
            self._changed()
            return True

        try:
            await self.api.delete_session(session_id)
            sessions = await self.api.list_sessions()
        except Exception:
            logger.exception("Failed to delete chat session %s", session_id)
            self._error("Failed to delete chat session. Please try again.")
            return False

        self.sessions = sessions
        if self.selected_id == session_id:
            self.selected_id = sessions[0].id if sessions else ""
        self._changed()
        self.notify(Notification("Chat deleted", "Your chat session has been removed."))
        return True

    def apply_name(self, session_id: str, name: str) -> None:
        session = self.find(session_id)
        if session is not None and session.name != name:
            session.name = name
            self._changed()

    async def rename_session(self, session_id: str, name: str) -> bool:
        """Rename locally, then persist. A failed save keeps the local name until the next load."""
        name = name.strip()
        if not name:
            return False
        self.apply_name(session_id, name)
        if is_transient(session_id):
            return True
        try:
            await self.api.rename_session(session_id, name)
        except Exception:
            logger.exception("Failed to rename chat session %s", session_id)
            self._error("Failed to save the new chat name.")
            return False
        return True
