"""
Tests for ChatPage and the terminal front end built on it.
"""

import asyncio
import io
import logging

import pytest

from levelup.cli import TerminalView
from levelup.client.notify import LogNotifier, Notification, Osc52Clipboard
from levelup.client.page import STARTER_PROMPTS, ChatPage
from levelup.client.types import ChatSession, Message


def _page(api, notifications, **kwargs):
    return ChatPage(api, notifications, render_delay=0, id_factory=lambda: "session-1700000000000-abc", **kwargs)


class TestMount:
    @pytest.mark.asyncio
    async def test_logged_out(self, notifications):
        redirected = []
        page = ChatPage(None, notifications, on_logged_out=lambda: redirected.append(True))
        assert not await page.mount()
        assert notifications[0].title == "Unauthorized"
        assert notifications[0].description == "You are logged out. Logging in again..."
        assert redirected == [True]

    @pytest.mark.asyncio
    async def test_loads_sessions_and_history(self, fake_api, notifications):
        fake_api.sessions = [ChatSession("a", "A")]
        fake_api.history["a"] = [Message("user", "hi", "t"), Message("assistant", "hello", "t")]
        page = _page(fake_api, notifications)
        assert await page.mount()
        assert page.sessions.selected_id == "a"
        assert [m.content for m in page.messages] == ["hi", "hello"]
        assert not page.show_starter_prompts


class TestFlow:
    @pytest.mark.asyncio
    async def test_new_chat_then_starter_prompt(self, fake_api, notifications):
        page = _page(fake_api, notifications)
        await page.mount()
        await page.new_chat()
        assert page.show_starter_prompts

        page.use_starter_prompt(0)
        assert page.chat.input == STARTER_PROMPTS[0].prompt
        assert await page.send()
        assert page.sessions.selected.name == "Delegation Basics"
        assert not page.show_starter_prompts

    @pytest.mark.asyncio
    async def test_delete_switches_history(self, fake_api, notifications):
        fake_api.sessions = [ChatSession("a", "A"), ChatSession("b", "B")]
        fake_api.history["b"] = [Message("user", "in b", "t")]
        page = _page(fake_api, notifications)
        await page.mount()
        await page.delete_chat("a")
        assert page.chat.session_id == "b"
        assert [m.content for m in page.messages] == ["in b"]

    @pytest.mark.asyncio
    async def test_send_without_session(self, fake_api, notifications):
        page = _page(fake_api, notifications)
        await page.mount()
        page.set_input("hello")
        assert not await page.send()

    @pytest.mark.asyncio
    async def test_on_change_fires(self, fake_api, notifications):
        changes = []
        page = _page(fake_api, notifications, on_change=lambda: changes.append(1))
        await page.mount()
        await page.new_chat()
        assert changes


class TestTerminalView:
    @pytest.mark.asyncio
    async def test_prints_draft_incrementally(self, fake_api, notifications):
        fake_api.sessions = [ChatSession("a", "A")]
        fake_api.frames = ['data: {"content": "Hel"}\n\n', 'data: {"content": "lo"}\n\n']
        out = io.StringIO()
        view = TerminalView(out)
        page = _page(fake_api, notifications, on_change=view.on_change)
        view.page = page
        await page.mount()

        page.set_input("hi")
        await page.send()
        view.end_reply()
        assert out.getvalue() == "mentor> Hello\n"

    def test_notification_marks(self):
        out = io.StringIO()
        TerminalView(out).notify(Notification("Error", "boom", "destructive"))
        assert out.getvalue() == "! Error: boom\n"


def test_log_notifier_levels(caplog):
    notifier = LogNotifier("test.notify")
    with caplog.at_level(logging.INFO, logger="test.notify"):
        notifier(Notification("Copied!", "Message copied to clipboard"))
        notifier(Notification("Error", "boom", "destructive"))
    assert [r.levelno for r in caplog.records] == [logging.INFO, logging.WARNING]
    assert len(notifier.history) == 2


def test_osc52_clipboard():
    out = io.StringIO()
    Osc52Clipboard(out)("hi")
    assert out.getvalue() == "\x1b]52;c;aGk=\x07"


@pytest.mark.asyncio
async def test_delete_ignored_while_streaming(fake_api, notifications):
    fake_api.sessions = [ChatSession("a", "A"), ChatSession("b", "B")]
    fake_api.gate = asyncio.Event()
    page = _page(fake_api, notifications)
    await page.mount()

    page.set_input("hi")
    sending = asyncio.ensure_future(page.send())
    await asyncio.sleep(0.01)
    await page.delete_chat("a")
    assert fake_api.count("delete_session") == 0
    assert page.chat.session_id == "a"

    fake_api.gate.set()
    assert await sending
