from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Dict, List, Optional

import httpx

from levelup.core.config import get_settings
from levelup.core.sse import DONE_TOKEN, iter_data_payloads

logger = logging.getLogger(__name__)

DEMO_REPLY = (
    "Thanks for your message! I'm your Level Up management development assistant.\n\n"
    "Since this is a demo environment, I can't provide real-time AI responses, but in the full "
    "version I would help you with:\n\n"
    "• **Leadership Challenges**: Navigate difficult team situations with proven frameworks\n"
    "• **Delegation Mastery**: Learn when and how to delegate effectively\n"
    "• **Feedback Techniques**: Give constructive feedback that motivates growth\n"
    "• **Meeting Optimization**: Run more productive and engaging meetings\n"
    "• **Communication Skills**: Build trust and clarity in all your interactions\n\n"
    "To unlock full conversational AI features, configure LLM_API_KEY in configs/levelup-api.env."
)
DEMO_TITLE = "Management Chat"
DEMO_STREAM_DELAY_SECONDS = 0.05


class LLMError(Exception):
    pass


def _messages(messages: List[Dict[str, str]], system_prompt: Optional[str]) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})
    for m in messages:
        role = m.get("role")
        if role not in ("user", "assistant"):
            continue
        out.append({"role": role, "content": str(m.get("content") or "")})
    return out


class LLMClient:
    """
    Minimal OpenAI-compatible `chat/completions` client.

    With no API key configured every call is answered by a canned demo reply so
    the chat flow stays usable in local environments.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 60,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.model = model
        self.timeout_seconds = max(1, int(timeout_seconds or 60))
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._transport = transport

    @property
    def demo_mode(self) -> bool:
        return not (self.api_key and self.base_url)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
        )

    def _payload(self, messages: List[Dict[str, str]], *, stream: bool, **overrides) -> Dict:
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        payload.update(overrides)
        if stream:
            payload["stream"] = True
        return payload

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        demo_reply: str = DEMO_REPLY,
    ) -> str:
        if self.demo_mode:
            return demo_reply

        overrides = {"max_tokens": max_tokens} if max_tokens else {}
        payload = self._payload(_messages(messages, system_prompt), stream=False, **overrides)
        url = f"{self.base_url}/v1/chat/completions"
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.exception("LLM request failed")
            raise LLMError("Failed to get AI response") from exc

        if resp.status_code >= 400:
            logger.error("LLM returned HTTP %s: %s", resp.status_code, resp.text[:500])
            raise LLMError(f"LLM returned HTTP {resp.status_code}")
        try:
            data = resp.json()
        except Exception as exc:
            raise LLMError("Invalid LLM response") from exc

        content = (
            (((data or {}).get("choices") or [{}])[0].get("message") or {}).get("content")  # type: ignore[union-attr]
            if isinstance(data, dict)
            else None
        )
        if not isinstance(content, str) or not content:
            return "Sorry, I could not generate a response."
        return content

    async def stream(
        self,
        messages: List[Dict[str, str]],
        *,
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Yield content deltas as they arrive."""
        if self.demo_mode:
            for word in DEMO_REPLY.split(" "):
                yield word + " "
                await asyncio.sleep(DEMO_STREAM_DELAY_SECONDS)
            return

        payload = self._payload(_messages(messages, system_prompt), stream=True)
        url = f"{self.base_url}/v1/chat/completions"
        try:
            async with self._client() as client:
                async with client.stream("POST", url, json=payload) as resp:
                    if resp.status_code >= 400:
                        body = await resp.aread()
                        logger.error("LLM stream returned HTTP %s: %s", resp.status_code, body[:500])
                        raise LLMError(f"LLM returned HTTP {resp.status_code}")
                    async for data in iter_data_payloads(resp.aiter_text()):
                        if data.strip() == DONE_TOKEN:
                            break
                        try:
                            obj = json.loads(data)
                        except json.JSONDecodeError:
                            if data.strip():
                                logger.warning("Skipping unparseable LLM frame: %r", data[:200])
                            continue
                        choices = obj.get("choices") if isinstance(obj, dict) else None
                        if not isinstance(choices, list) or not choices:
                            continue
                        delta = (choices[0] or {}).get("delta") or {}
                        piece = delta.get("content") if isinstance(delta, dict) else None
                        if isinstance(piece, str) and piece:
                            yield piece
        except httpx.HTTPError as exc:
            logger.exception("LLM stream failed")
            raise LLMError("Failed to get AI response") from exc


def get_llm_client() -> LLMClient:
    settings = get_settings()
    return LLMClient(
        base_url=settings.LLM_BASE_URL,
        api_key=settings.LLM_API_KEY,
        model=settings.LLM_MODEL,
        timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
        max_tokens=settings.LLM_MAX_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
    )
