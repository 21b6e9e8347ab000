"""
Chat page composition: auth gate, session sidebar, streaming consumer.

Front ends render from `ChatPage` state and call its methods; `on_change` fires
whenever something visible changed so they can repaint and scroll to the end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from levelup.client.api import ChatApi
from levelup.client.history import HistoryCache
from levelup.client.notify import DESTRUCTIVE, Clipboard, Notification, Notifier
from levelup.client.sessions import SessionStore
from levelup.client.streaming import StreamingChat
from levelup.client.types import Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StarterPrompt:
    title: str
    prompt: str


STARTER_PROMPTS: Tuple[StarterPrompt, ...] = (
    StarterPrompt("Delegation Help", "I need help delegating tasks to my team effectively"),
    StarterPrompt("Feedback Practice", "How do I give difficult feedback to a team member?"),
    StarterPrompt("Meeting Efficiency", "My meetings are unproductive. What can I do?"),
    StarterPrompt("Team Motivation", "How can I better motivate my team members?"),
)


class ChatPage:
    def __init__(
        self,
        api: Optional[ChatApi],
        notify: Notifier,
        *,
        clipboard: Optional[Clipboard] = None,
        on_change: Optional[Callable[[], None]] = None,
        on_logged_out: Optional[Callable[[], None]] = None,
        render_delay: float = 0.01,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.api = api
        self.notify = notify
        self.on_change = on_change
        self.on_logged_out = on_logged_out
        self.authenticated = api is not None
        self.history: Optional[HistoryCache] = None
        self.sessions: Optional[SessionStore] = None
        self.chat: Optional[StreamingChat] = None
        if api is None:
            return

        self.history = HistoryCache(api)
        store_kwargs = {"id_factory": id_factory} if id_factory is not None else {}
        self.sessions = SessionStore(api, notify, on_change=self._changed, **store_kwargs)
        self.chat = StreamingChat(
            api,
            self.history,
            notify,
            clipboard=clipboard,
            render_delay=render_delay,
            on_change=self._changed,
            on_session_named=self._session_named,
        )

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    async def _session_named(self, session_id: str, name: str) -> None:
        if self.sessions is not None:
            self.sessions.apply_name(session_id, name)

    async def mount(self) -> bool:
        """Load sessions and the selected history, or bounce an unauthenticated visitor."""
        if not self.authenticated or self.sessions is None:
            self.notify(Notification("Unauthorized", "You are logged out. Logging in again...", DESTRUCTIVE))
            if self.on_logged_out is not None:
                self.on_logged_out()
            return False
        await self.sessions.load_sessions()
        await self._open(self.sessions.selected_id)
        return True

    async def _open(self, session_id: str) -> None:
        if self.chat is None or self.history is None:
            return
        self.chat.session_id = session_id
        if session_id:
            await self.history.get(session_id)
        self._changed()

    @property
    def messages(self) -> List[Message]:
        return self.chat.messages if self.chat is not None else []

    @property
    def show_starter_prompts(self) -> bool:
        return self.chat is not None and not self.chat.messages and not self.chat.draft

    async def select_session(self, session_id: str) -> None:
        if self.sessions is None or self.chat is None:
            return
        if self.chat.is_typing:
            # one exchange at a time; the draft belongs to the current session
            logger.info("Ignoring session switch while a reply is streaming")
            return
        self.sessions.select(session_id)
        await self._open(session_id)

    async def new_chat(self) -> None:
        if self.sessions is None or self.chat is None or self.chat.is_typing:
            return
        await self.sessions.create_session()
        await self._open(self.sessions.selected_id)

    async def delete_chat(self, session_id: str) -> None:
        if self.sessions is None or self.chat is None:
            return
        if self.chat.is_typing:
            logger.info("Ignoring delete while a reply is streaming")
            return
        await self.sessions.delete_session(session_id)
        if self.chat is not None and self.chat.session_id != self.sessions.selected_id:
            await self._open(self.sessions.selected_id)

    async def rename_chat(self, session_id: str, name: str) -> None:
        if self.sessions is not None:
            await self.sessions.rename_session(session_id, name)

    def set_input(self, text: str) -> None:
        if self.chat is not None:
            self.chat.input = text
            self._changed()

    def use_starter_prompt(self, index: int) -> None:
        self.set_input(STARTER_PROMPTS[index].prompt)

    async def send(self) -> bool:
        if self.chat is None or not self.chat.session_id:
            return False
        return await self.chat.send()

    def stop(self) -> bool:
        return self.chat.stop() if self.chat is not None else False

    def copy_message(self, content: str) -> None:
        if self.chat is not None:
            self.chat.copy_message(content)
