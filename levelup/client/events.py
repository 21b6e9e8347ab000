"""
Decoding of the `/api/chat/stream` body into tagged events.

Frames look like `data: {"content": "..."}` or `data: {"error": "..."}` and the
stream ends with `data: [DONE]`. The terminator is inert: `End` is emitted when
the body itself ends, whether or not `[DONE]` was seen.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Optional, Union

from levelup.core.sse import DONE_TOKEN, iter_data_payloads

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Content:
    text: str


@dataclass(frozen=True)
class StreamError:
    message: str


@dataclass(frozen=True)
class End:
    pass


StreamEvent = Union[Content, StreamError, End]


def parse_payload(payload: str) -> Optional[StreamEvent]:
    """Map one `data:` payload to an event; None for terminators, noise and bad JSON."""
    if payload.strip() == DONE_TOKEN:
        return None
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        if payload.strip():
            logger.warning("Failed to parse SSE data: %r", payload[:200])
        return None
    if not isinstance(data, dict):
        return None
    if data.get("error"):
        return StreamError(str(data["error"]))
    content = data.get("content")
    if isinstance(content, str) and content:
        return Content(content)
    return None


async def decode_events(chunks: AsyncIterable[str]) -> AsyncIterator[StreamEvent]:
    async for payload in iter_data_payloads(chunks):
        event = parse_payload(payload)
        if event is not None:
            yield event
    yield End()
