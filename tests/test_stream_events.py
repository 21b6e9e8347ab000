"""
Tests for SSE line handling and the client event decoder.
"""

import logging

import pytest

from levelup.client.events import Content, End, StreamError, decode_events, parse_payload
from levelup.core.sse import DONE_FRAME, data_payload, format_event, iter_data_payloads


async def _chunks(*parts):
    for p in parts:
        yield p


async def _collect(agen):
    return [x async for x in agen]


def _draft(events):
    return "".join(e.text for e in events if isinstance(e, Content))


class TestSseHelpers:
    def test_format_event(self):
        assert format_event({"content": "hé"}) == 'data: {"content": "hé"}\n\n'.encode("utf-8")
        assert DONE_FRAME == b"data: [DONE]\n\n"

    def test_data_payload(self):
        assert data_payload("data: {}") == "{}"
        assert data_payload("data:{}\r") == "{}"
        assert data_payload("event: ping") is None
        assert data_payload(": keepalive") is None

    @pytest.mark.asyncio
    async def test_lines_split_across_chunks(self):
        payloads = await _collect(iter_data_payloads(_chunks('data: {"con', 'tent": "a"}\n\nda', "ta: [DONE]")))
        assert payloads == ['{"content": "a"}', "[DONE]"]


class TestParsePayload:
    def test_done_is_inert(self):
        assert parse_payload("[DONE]") is None

    def test_error_field(self):
        assert parse_payload('{"error": "Failed to get response"}') == StreamError("Failed to get response")

    def test_content_field(self):
        assert parse_payload('{"content": "Hi"}') == Content("Hi")

    def test_empty_payload_is_silent(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_payload("") is None
        assert not caplog.records

    def test_garbage_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_payload("{not json") is None
        assert "Failed to parse SSE data" in caplog.text


class TestDecodeEvents:
    @pytest.mark.asyncio
    async def test_only_done_frames(self):
        events = await _collect(decode_events(_chunks("data: [DONE]\n\n", "data: [DONE]\n\n")))
        assert events == [End()]
        assert _draft(events) == ""

    @pytest.mark.asyncio
    async def test_malformed_frame_between_valid_ones(self):
        events = await _collect(
            decode_events(
                _chunks(
                    'data: {"content": "first "}\n\n',
                    "data: {oops\n\n",
                    'data: {"content": "second"}\n\n',
                )
            )
        )
        assert _draft(events) == "first second"
        assert isinstance(events[-1], End)
        assert not any(isinstance(e, StreamError) for e in events)

    @pytest.mark.asyncio
    async def test_error_frame_surfaces_as_event(self):
        events = await _collect(decode_events(_chunks('data: {"content": "a"}\n\ndata: {"error": "bad"}\n\n')))
        assert events == [Content("a"), StreamError("bad"), End()]
