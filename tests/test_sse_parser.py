"""Tests for SSE decoding and output accumulation"""

import json

import pytest

from codex_gateway import OutputAccumulator, SSEParser, collect_output, iter_sse_events


def sse(*events):
    return "".join(f"data: {json.dumps(event)}\n\n" for event in events).encode("utf-8")


def delta(text):
    return {"type": "response.output_text.delta", "delta": text}


async def chunks_of(data, size):
    for i in range(0, len(data), size):
        yield data[i:i + size]


async def decode(data, size):
    return await collect_output(iter_sse_events(chunks_of(data, size)))


class TestSSEParser:
    def test_blocks_across_feeds(self):
        parser = SSEParser()
        assert parser.feed(b'data: {"a"') == []
        assert parser.feed(b': 1}\n\nda') == ['{"a": 1}']
        assert parser.feed(b'ta: {"b": 2}\n\n') == ['{"b": 2}']

    def test_crlf_and_ignored_lines(self):
        parser = SSEParser()
        payloads = parser.feed(b'event: x\r\nid: 1\r\ndata: {"a": 1}\r\n\r\n: comment\r\n\r\n')
        assert payloads == ['{"a": 1}']

    def test_done_sentinel(self):
        parser = SSEParser()
        assert parser.feed(b"data: [DONE]\n\n") == []

    def test_flush_trailing_block(self):
        parser = SSEParser()
        assert parser.feed(b'data: {"tail": true}') == []
        assert parser.flush() == ['{"tail": true}']


class TestDecoding:
    @pytest.mark.asyncio
    async def test_deltas_concatenate(self):
        assert await decode(sse(delta("Hel"), delta("lo")), 1024) == "Hello"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 2, 3, 7, 64])
    async def test_chunk_boundaries_do_not_matter(self, size):
        data = sse(delta("héllo "), delta("wörld 🌍"), {"type": "response.completed"})
        assert await decode(data, size) == "héllo wörld 🌍"

    @pytest.mark.asyncio
    async def test_malformed_block_skipped(self):
        data = sse(delta("a")) + b"data: {not json\n\n" + sse(delta("b"))
        assert await decode(data, 5) == "ab"

    @pytest.mark.asyncio
    async def test_empty_body(self):
        assert await decode(b"", 10) == ""

    @pytest.mark.asyncio
    async def test_events_in_order(self):
        data = sse({"type": "one"}, {"type": "two"})
        events = [event async for event in iter_sse_events(chunks_of(data, 3))]
        assert [e["type"] for e in events] == ["one", "two"]


class TestOutputAccumulator:
    def test_done_text_used_when_no_deltas(self):
        acc = OutputAccumulator()
        assert acc.extend([{"type": "response.output_text.done", "text": "full"}]) == "full"

    def test_deltas_win_over_done_text(self):
        acc = OutputAccumulator()
        events = [delta("par"), delta("tial"), {"type": "response.output_text.done", "text": "other"}]
        assert acc.extend(events) == "partial"

    def test_response_output_text(self):
        acc = OutputAccumulator()
        events = [{"type": "response.completed", "response": {"output_text": "from response"}}]
        assert acc.extend(events) == "from response"

    def test_first_source_wins(self):
        acc = OutputAccumulator()
        events = [
            {"type": "response.output_text.done", "text": "first"},
            {"type": "response.completed", "response": {"output_text": "second"}},
        ]
        assert acc.extend(events) == "first"
