"""
Server-Sent Events (SSE) decoding for Codex Responses API streams.

Parsing (bytes -> JSON events) and accumulation (events -> output text) are
kept apart so each can be exercised on its own.
"""
import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def _block_payload(block: str) -> Optional[str]:
    """Join the data lines of one event block into a single payload"""
    data_lines = [line[len(DATA_PREFIX):].strip() for line in block.split("\n") if line.startswith(DATA_PREFIX)]
    if not data_lines:
        return None

    data = "\n".join(data_lines)
    if not data or data == DONE_SENTINEL:
        return None
    return data


class SSEParser:
    """Incremental parser for text/event-stream bytes.

    Blocks are separated by a blank line. A trailing partial block is
    carried across reads; UTF-8 sequences may straddle reads too.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        """Consume raw bytes and return payloads of completed blocks."""
        if not chunk:
            return []

        self._buffer += self._decoder.decode(chunk)
        # Normalise CRLF; a CR left at the end is joined by the next read
        self._buffer = self._buffer.replace("\r\n", "\n")

        blocks = self._buffer.split("\n\n")
        self._buffer = blocks.pop()

        return [payload for payload in map(_block_payload, blocks) if payload is not None]

    def flush(self) -> List[str]:
        """Return the payload of a final block left without a blank line."""
        remaining = (self._buffer + self._decoder.decode(b"", final=True)).replace("\r\n", "\n")
        self._buffer = ""

        payloads = []
        for block in remaining.split("\n\n"):
            payload = _block_payload(block)
            if payload is not None:
                payloads.append(payload)
        return payloads


def decode_payload(payload: str) -> Optional[Dict[str, Any]]:
    """Parse one payload; malformed or non-object JSON yields None."""
    try:
        event = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.debug(f"Skipping malformed SSE payload ({e}): {payload[:200]!r}")
        return None

    if not isinstance(event, dict):
        logger.debug(f"Skipping non-object SSE payload: {payload[:200]!r}")
        return None
    return event


async def iter_sse_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[Dict[str, Any]]:
    """
    Decode a byte stream into a lazy sequence of JSON events.

    Args:
        chunks: Byte chunks as they arrive from the transport

    Yields:
        Decoded event objects, in stream order
    """
    parser = SSEParser()

    async for chunk in chunks:
        for payload in parser.feed(chunk):
            event = decode_payload(payload)
            if event is not None:
                yield event

    for payload in parser.flush():
        event = decode_payload(payload)
        if event is not None:
            yield event


class OutputAccumulator:
    """Folds Responses API events into the final output text.

    Text deltas append. While nothing has accumulated, a terminal
    ``response.output_text.done`` text or a response-level ``output_text``
    is taken as the whole output; the first non-empty source wins.
    """

    def __init__(self) -> None:
        self.text = ""

    def add(self, event: Dict[str, Any]) -> None:
        kind = event.get("type")

        if kind == "response.output_text.delta":
            delta = event.get("delta")
            if isinstance(delta, str):
                self.text += delta

        if not self.text and kind == "response.output_text.done":
            done_text = event.get("text")
            if isinstance(done_text, str):
                self.text = done_text

        if not self.text:
            response = event.get("response")
            if isinstance(response, dict):
                output_text = response.get("output_text")
                if isinstance(output_text, str) and output_text:
                    self.text = output_text

    def extend(self, events: Iterable[Dict[str, Any]]) -> str:
        for event in events:
            self.add(event)
        return self.text


async def collect_output(events: AsyncIterable[Dict[str, Any]]) -> str:
    """Accumulate an event sequence into the output text."""
    accumulator = OutputAccumulator()
    async for event in events:
        accumulator.add(event)
    return accumulator.text
