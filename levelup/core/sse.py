"""
Server-sent-event helpers shared by the chat relay, the LLM client and the
client-side stream consumer.

Only the `data:` field is used anywhere in this project; other SSE fields
(`event:`, `id:`, `retry:`) and comment lines are skipped.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterable, AsyncIterator, Dict

DATA_PREFIX = "data:"
DONE_TOKEN = "[DONE]"
DONE_FRAME = f"{DATA_PREFIX} {DONE_TOKEN}\n\n".encode("utf-8")


def format_event(payload: Dict[str, Any]) -> bytes:
    return f"{DATA_PREFIX} {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def data_payload(line: str) -> str | None:
    """Return the payload of a `data:` line, or None for any other line."""
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload


async def iter_data_payloads(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
    """
    Split decoded text chunks into lines and yield each `data:` payload in order.

    A line cut across two network reads is buffered until its newline arrives;
    whatever is left when the stream ends is flushed as a final line.
    """
    buf = ""
    async for chunk in chunks:
        if not chunk:
            continue
        buf += chunk
        while "\n" in buf:
            line, buf = buf.split("\n", 1)
            payload = data_payload(line)
            if payload is not None:
                yield payload
    if buf:
        payload = data_payload(buf)
        if payload is not None:
            yield payload
