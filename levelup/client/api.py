"""
HTTP transport for the chat endpoints.

`ChatApi` is the narrow surface the session store and the streaming consumer
depend on; `HttpChatApi` implements it over httpx and tests substitute an
in-memory fake.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence

import httpx

from levelup.client.types import ChatSession, Message

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason or httpx.codes.get_reason_phrase(status_code)
        super().__init__(f"HTTP {status_code}: {self.reason}")


class StreamAborted(Exception):
    """The server reported an `error` frame mid-stream."""


class ChatApi(Protocol):
    async def list_sessions(self) -> List[ChatSession]: ...

    async def create_session(self, session_id: str) -> str: ...

    async def delete_session(self, session_id: str) -> None: ...

    async def rename_session(self, session_id: str, name: str) -> None: ...

    async def generate_name(self, session_id: str, messages: Sequence[Message]) -> str: ...

    async def get_history(self, session_id: str) -> List[Message]: ...

    def stream_chat(self, message: str, session_id: str) -> AsyncIterator[str]: ...


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        raise ApiError(resp.status_code, resp.reason_phrase)


class HttpChatApi:
    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.token}"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        async with self._client() as client:
            resp = await client.request(method, path, json=json)
        _raise_for_status(resp)
        if not resp.content:
            return None
        return resp.json()

    async def list_sessions(self) -> List[ChatSession]:
        data = await self._request("GET", "/api/chat/sessions")
        return [ChatSession.from_json(item) for item in (data or [])]

    async def create_session(self, session_id: str) -> str:
        data = await self._request("POST", "/api/chat/session", json={"sessionId": session_id}) or {}
        # older servers only acknowledge; fall back to the id we proposed
        return str(data.get("sessionId") or data.get("id") or session_id)

    async def delete_session(self, session_id: str) -> None:
        await self._request("DELETE", f"/api/chat/session/{session_id}")

    async def rename_session(self, session_id: str, name: str) -> None:
        await self._request("PATCH", f"/api/chat/session/{session_id}", json={"name": name})

    async def generate_name(self, session_id: str, messages: Sequence[Message]) -> str:
        data = await self._request(
            "POST",
            f"/api/chat/session/{session_id}/generate-name",
            json={"messages": [m.to_json() for m in messages]},
        )
        return str((data or {}).get("name") or "")

    async def get_history(self, session_id: str) -> List[Message]:
        data = await self._request("GET", f"/api/chat/history/{session_id}")
        return [Message.from_json(item) for item in (data or [])]

    async def stream_chat(self, message: str, session_id: str) -> AsyncIterator[str]:
        """Yield decoded body text as it arrives; raises ApiError before the first chunk on non-2xx."""
        async with self._client() as client:
            async with client.stream(
                "POST",
                "/api/chat/stream",
                json={"message": message, "sessionId": session_id},
                headers={"Accept": "text/event-stream"},
            ) as resp:
                _raise_for_status(resp)
                async for text in resp.aiter_text():
                    yield text


async def login(
    base_url: str,
    email: str,
    password: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    async with httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=30.0, transport=transport) as client:
        resp = await client.post("/api/auth/login", data={"username": email, "password": password})
    _raise_for_status(resp)
    data: Dict[str, Any] = resp.json()
    return str(data["access_token"])
