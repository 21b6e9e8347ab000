"""
One chat exchange at a time: input buffer, streamed draft, history refresh.

    idle -> sending (typing, draft="") -> streaming (draft grows)
         -> committed (history refetched) | failed (error set, input restored)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from levelup.client.api import ChatApi, StreamAborted
from levelup.client.events import Content, StreamError, decode_events
from levelup.client.history import HistoryCache
from levelup.client.notify import DESTRUCTIVE, Clipboard, Notification, Notifier
from levelup.client.types import Message, now_iso

logger = logging.getLogger(__name__)


class StreamingChat:
    def __init__(
        self,
        api: ChatApi,
        history: HistoryCache,
        notify: Notifier,
        *,
        clipboard: Optional[Clipboard] = None,
        render_delay: float = 0.01,
        on_change: Optional[Callable[[], None]] = None,
        on_session_named: Optional[Callable[[str, str], Awaitable[None]]] = None,
    ):
        self.api = api
        self.history = history
        self.notify = notify
        self.clipboard = clipboard
        self.render_delay = render_delay
        self.on_change = on_change
        self.on_session_named = on_session_named

        self.session_id = ""
        self.input = ""
        self.is_typing = False
        self.error: Optional[str] = None
        self.draft: Optional[str] = None

        self._task: Optional[asyncio.Future] = None
        self._stopped = False
        # set once the reply has been fully received; stop() no longer applies
        self._committed = False

    @property
    def messages(self) -> List[Message]:
        return self.history.peek(self.session_id)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    async def send(self) -> bool:
        """Send the pending input. Returns True once the reply is committed to history."""
        if not self.input.strip() or self.is_typing:
            return False

        self.is_typing = True
        self.error = None
        self.draft = ""
        self._stopped = False
        self._committed = False
        self._changed()
        # let the typing indicator render before any network I/O
        await asyncio.sleep(self.render_delay)

        text = self.input
        self.input = ""
        session_id = self.session_id
        was_empty = not self.history.peek(session_id)
        self._changed()

        self._task = asyncio.ensure_future(self._exchange(text, session_id, was_empty))
        try:
            await self._task
        except asyncio.CancelledError:
            self.input = text
            if not self._stopped:
                raise
            logger.info("Exchange stopped for session %s", session_id)
            return False
        except Exception as exc:
            logger.exception("Failed to send message")
            self.error = str(exc) or "Failed to send message"
            self.input = text
            self.draft = None
            self.notify(
                Notification(
                    "Error",
                    str(exc) or "Failed to send message. Please try again.",
                    DESTRUCTIVE,
                )
            )
            return False
        finally:
            self.is_typing = False
            self.draft = None
            self._task = None
            self._changed()
        return True

    async def _exchange(self, text: str, session_id: str, was_empty: bool) -> None:
        chunks = self.api.stream_chat(text, session_id)
        try:
            async for event in decode_events(chunks):
                if isinstance(event, StreamError):
                    raise StreamAborted(event.message)
                if isinstance(event, Content):
                    self.draft = (self.draft or "") + event.text
                    self._changed()
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()

        # the server has stored both messages by now
        self._committed = True
        reply = self.draft or ""
        sent = Message("user", text, now_iso())
        if was_empty:
            await self._generate_name(session_id, self.history.peek(session_id) + [sent])

        self.draft = None
        self.history.record(session_id, [sent, Message("assistant", reply, now_iso())])
        await self.history.invalidate(session_id)

    async def _generate_name(self, session_id: str, transcript: List[Message]) -> None:
        try:
            name = await self.api.generate_name(session_id, transcript)
            if name and self.on_session_named is not None:
                await self.on_session_named(session_id, name)
        except Exception:
            logger.warning("Failed to generate session name for %s", session_id, exc_info=True)

    def stop(self) -> bool:
        """Abandon the in-flight exchange. The typed text comes back; nothing is reported as an error."""
        if self._task is None or self._task.done() or self._committed:
            return False
        self._stopped = True
        self._task.cancel()
        return True

    def copy_message(self, content: str) -> None:
        if self.clipboard is not None:
            self.clipboard(content)
        self.notify(Notification("Copied!", "Message copied to clipboard"))
