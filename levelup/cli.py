"""
levelup-chat: talk to the AI mentor from a terminal.

    levelup-chat --base-url http://localhost:8000 --email me@example.com --password ...

Type a message and press enter. Commands: /new /list /use <n> /rename <name>
/delete /copy /quit. Ctrl-C while a reply streams stops it.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from levelup.client.api import ApiError, HttpChatApi, login
from levelup.client.notify import DESTRUCTIVE, LogNotifier, Notification, Osc52Clipboard
from levelup.client.page import STARTER_PROMPTS, ChatPage

logger = logging.getLogger("levelup-chat")

HELP = "commands: /new /list /use <n> /rename <name> /delete /copy /quit"


class TerminalView:
    """Prints the page: notifications, history and the reply as it streams."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self.page: Optional[ChatPage] = None
        self.log = LogNotifier("levelup-chat.notify")
        self._printed = 0

    def notify(self, n: Notification) -> None:
        self.log(n)
        mark = "!" if n.variant == DESTRUCTIVE else "*"
        self.out.write(f"{mark} {n.title}: {n.description}\n")
        self.out.flush()

    def on_change(self) -> None:
        chat = self.page.chat if self.page is not None else None
        if chat is None or chat.draft is None:
            return
        new = chat.draft[self._printed:]
        if new:
            if self._printed == 0:
                self.out.write("mentor> ")
            self.out.write(new)
            self.out.flush()
            self._printed = len(chat.draft)

    def end_reply(self) -> None:
        if self._printed:
            self.out.write("\n")
        self._printed = 0

    def show_sessions(self) -> None:
        store = self.page.sessions if self.page is not None else None
        if store is None:
            return
        if not store.sessions:
            self.out.write("(no chats yet, /new to start one)\n")
        for i, s in enumerate(store.sessions, start=1):
            mark = ">" if s.id == store.selected_id else " "
            self.out.write(f"{mark} {i}. {s.name}\n")

    def show_history(self) -> None:
        if self.page is None:
            return
        if self.page.show_starter_prompts:
            self.out.write("Try one of these:\n")
            for i, p in enumerate(STARTER_PROMPTS, start=1):
                self.out.write(f"  ?{i} {p.title}: {p.prompt}\n")
            return
        for m in self.page.messages:
            who = "you" if m.role == "user" else "mentor"
            self.out.write(f"{who}> {m.content}\n")


async def _read_line(prompt: str) -> Optional[str]:
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, input, prompt)
    except EOFError:
        return None


async def _send(page: ChatPage, view: TerminalView) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, page.stop)
        installed = True
    except (NotImplementedError, RuntimeError):
        installed = False
    try:
        ok = await page.send()
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
        view.end_reply()
    if ok:
        view.show_history()


async def run(page: ChatPage, view: TerminalView) -> int:
    if not await page.mount():
        return 1
    if page.sessions is not None and not page.sessions.sessions:
        await page.new_chat()
    view.show_sessions()
    view.show_history()
    view.out.write(HELP + "\n")

    while True:
        line = await _read_line("you> ")
        if line is None:
            return 0
        line = line.strip()
        if not line:
            continue
        store = page.sessions
        cmd, _, arg = line.partition(" ")
        if cmd == "/quit":
            return 0
        if cmd == "/new":
            await page.new_chat()
            view.show_history()
        elif cmd == "/list":
            await store.load_sessions()
            view.show_sessions()
        elif cmd == "/use":
            try:
                target = store.sessions[int(arg) - 1]
            except (ValueError, IndexError):
                view.out.write("usage: /use <n> (see /list)\n")
                continue
            await page.select_session(target.id)
            view.show_history()
        elif cmd == "/rename":
            await page.rename_chat(store.selected_id, arg)
            view.show_sessions()
        elif cmd == "/delete":
            await page.delete_chat(store.selected_id)
            view.show_sessions()
        elif cmd == "/copy":
            replies = [m.content for m in page.messages if m.role == "assistant"]
            if replies:
                page.copy_message(replies[-1])
            else:
                view.out.write("nothing to copy yet\n")
        elif cmd.startswith("?") and cmd[1:].isdigit() and 1 <= int(cmd[1:]) <= len(STARTER_PROMPTS):
            page.use_starter_prompt(int(cmd[1:]) - 1)
            await _send(page, view)
        elif cmd.startswith("/"):
            view.out.write(HELP + "\n")
        else:
            page.set_input(line)
            await _send(page, view)


async def _amain(args: argparse.Namespace) -> int:
    token = args.token
    if not token and args.email:
        try:
            token = await login(args.base_url, args.email, args.password or "")
        except ApiError as e:
            logger.error("login failed: %s", e)
            token = None

    view = TerminalView()
    api = HttpChatApi(args.base_url, token) if token else None
    page = ChatPage(
        api,
        view.notify,
        clipboard=Osc52Clipboard(),
        on_change=view.on_change,
        on_logged_out=lambda: view.out.write("Log in with --token or --email/--password.\n"),
    )
    view.page = page
    return await run(page, view)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="levelup-chat: terminal client for the AI mentor")
    parser.add_argument("--base-url", type=str, default="http://127.0.0.1:8000")
    parser.add_argument("--token", type=str, default="", help="Bearer token")
    parser.add_argument("--email", type=str, default="", help="Log in with email/password instead of a token")
    parser.add_argument("--password", type=str, default="")
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return asyncio.run(_amain(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
