"""
Shared pytest fixtures for the levelup tests.

Provides:
- An in-memory SQLite database with every table created
- A FastAPI TestClient with db, session factory and LLM dependencies overridden
- A regular user and an admin user with bearer tokens
- FakeLLM: scripted completions and streams
- FakeChatApi: in-memory stand-in for the chat HTTP endpoints (client tests)
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from levelup.client.api import ApiError
from levelup.client.notify import Notification
from levelup.client.types import ChatSession, Message, now_iso
from levelup.core.db import get_db, get_session_factory
from levelup.core.llm_client import LLMError, get_llm_client
from levelup.core.security import create_access_token
from levelup.main import app
from levelup.models import Base, User


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_factory):
    session = db_factory()
    yield session
    session.close()


# ============================================================================
# Fake LLM
# ============================================================================

class FakeLLM:
    """Stands in for LLMClient; records what it was asked."""

    def __init__(self):
        self.reply = "Start with the outcome you need."
        self.chunks: List[str] = ["Del", "ega", "te by..."]
        self.fail = False
        self.fail_after: Optional[int] = None
        self.calls: List[Dict] = []

    @property
    def demo_mode(self) -> bool:
        return False

    async def complete(self, messages, *, system_prompt=None, max_tokens=None, demo_reply=""):
        self.calls.append({"kind": "complete", "messages": messages, "system_prompt": system_prompt})
        if self.fail:
            raise LLMError("boom")
        return self.reply

    async def stream(self, messages, *, system_prompt=None) -> AsyncIterator[str]:
        self.calls.append({"kind": "stream", "messages": messages, "system_prompt": system_prompt})
        if self.fail:
            raise LLMError("boom")
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise LLMError("boom")
            yield chunk


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


# ============================================================================
# API Client Fixtures
# ============================================================================

@pytest.fixture
def client(db_factory, fake_llm):
    def _get_db():
        session = db_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: db_factory
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _make_user(db, email: str, *, is_admin: bool = False) -> User:
    user = User(email=email, hashed_password="", is_admin=is_admin)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db) -> User:
    return _make_user(db, "manager@example.com")


@pytest.fixture
def admin(db) -> User:
    return _make_user(db, "boss@example.com", is_admin=True)


@pytest.fixture
def auth_headers(user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id, email=user.email)}"}


@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=admin.id, email=admin.email)}"}


# ============================================================================
# Client-side fakes
# ============================================================================

class FakeChatApi:
    """In-memory chat endpoints with switchable failures."""

    def __init__(self, sessions: Sequence[ChatSession] = ()):
        self.sessions: List[ChatSession] = list(sessions)
        self.history: Dict[str, List[Message]] = {}
        self.calls: List[tuple] = []
        self.fail: set = set()
        self.frames: List[str] = ['data: {"content": "Hello"}\n\n', "data: [DONE]\n\n"]
        self.stream_status = 200
        self.generated_name = "Delegation Basics"
        self.echo_ids = True
        self.gate: Optional[asyncio.Event] = None
        self.closed_streams = 0

    def _check(self, op: str) -> None:
        if op in self.fail:
            raise ApiError(500, "Internal Server Error")

    async def list_sessions(self) -> List[ChatSession]:
        self.calls.append(("list_sessions",))
        self._check("list_sessions")
        return [ChatSession(s.id, s.name, s.summary) for s in self.sessions]

    async def create_session(self, session_id: str) -> str:
        self.calls.append(("create_session", session_id))
        self._check("create_session")
        assigned = session_id if self.echo_ids else f"srv-{session_id}"
        self.sessions.insert(0, ChatSession(assigned, "New Chat", ""))
        return assigned if self.echo_ids else ""

    async def delete_session(self, session_id: str) -> None:
        self.calls.append(("delete_session", session_id))
        self._check("delete_session")
        self.sessions = [s for s in self.sessions if s.id != session_id]

    async def rename_session(self, session_id: str, name: str) -> None:
        self.calls.append(("rename_session", session_id, name))
        self._check("rename_session")
        for s in self.sessions:
            if s.id == session_id:
                s.name = name

    async def generate_name(self, session_id: str, messages: Sequence[Message]) -> str:
        self.calls.append(("generate_name", session_id, list(messages)))
        self._check("generate_name")
        return self.generated_name

    async def get_history(self, session_id: str) -> List[Message]:
        self.calls.append(("get_history", session_id))
        self._check("get_history")
        return list(self.history.get(session_id, []))

    async def stream_chat(self, message: str, session_id: str) -> AsyncIterator[str]:
        self.calls.append(("stream_chat", message, session_id))
        if self.stream_status >= 400:
            raise ApiError(self.stream_status, "Internal Server Error")
        try:
            for frame in self.frames:
                if self.gate is not None:
                    await self.gate.wait()
                yield frame
            reply = "".join(
                f.split('"content": "', 1)[1].split('"', 1)[0] for f in self.frames if '"content"' in f
            )
            self.history.setdefault(session_id, []).extend(
                [Message("user", message, now_iso()), Message("assistant", reply, now_iso())]
            )
        finally:
            self.closed_streams += 1

    def count(self, op: str) -> int:
        return sum(1 for c in self.calls if c[0] == op)


class Notifications(list):
    def __call__(self, notification: Notification) -> None:
        self.append(notification)

    @property
    def titles(self) -> List[str]:
        return [n.title for n in self]


@pytest.fixture
def notifications() -> Notifications:
    return Notifications()


@pytest.fixture
def fake_api() -> FakeChatApi:
    return FakeChatApi()
