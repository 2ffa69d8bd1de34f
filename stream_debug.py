"""
Utilities to capture raw Codex stream bytes for troubleshooting.

When stream tracing is enabled, each gateway attempt writes the raw SSE
chunks it received and the event types it decoded to a size-capped file.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Optional


class StreamTracer:
    """Captures one gateway attempt's stream into a log file."""

    def __init__(self, request_id: str, model: str, base_dir: str, max_bytes: Optional[int]):
        safe_model = "".join(c if c.isalnum() or c in "-._" else "-" for c in model)
        timestamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")

        self.request_id = request_id
        self.model = safe_model
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

        self.path = self.base_dir / f"{timestamp}_{safe_model}_{request_id}.log"
        self._file = self.path.open("w", encoding="utf-8")

        self._max_bytes = max_bytes if isinstance(max_bytes, int) and max_bytes > 0 else None
        self._written = 0
        self._truncated = False

        self.log_note(f"stream tracer initialized for model={model}")

    def log_raw_chunk(self, chunk: bytes) -> None:
        """Record bytes exactly as read from the transport."""
        self._write("RAW", chunk.decode("utf-8", "replace"))

    def log_event(self, event_type: Optional[str]) -> None:
        """Record the type of a decoded event."""
        self._write("EVENT", str(event_type))

    def log_note(self, note: str) -> None:
        self._write("NOTE", note)

    def log_error(self, message: str) -> None:
        self._write("ERROR", message)

    def close(self) -> None:
        if self._file.closed:
            return
        try:
            self.log_note("stream tracer closed")
        finally:
            self._file.close()

    def _write(self, label: str, payload: str) -> None:
        if self._file.closed or self._truncated:
            return

        timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds")
        entry = f"[{timestamp}] [{label}] len={len(payload)}\n{payload}\n"
        encoded = entry.encode("utf-8", "replace")

        if self._max_bytes is not None and self._written + len(encoded) > self._max_bytes:
            remaining = max(self._max_bytes - self._written, 0)
            self._file.write(encoded[:remaining].decode("utf-8", "ignore"))
            self._file.write("\n[stream trace truncated]\n")
            self._file.flush()
            self._written = self._max_bytes
            self._truncated = True
            return

        self._file.write(entry)
        self._file.flush()
        self._written += len(encoded)


def maybe_create_stream_tracer(
    enabled: bool,
    request_id: str,
    model: str,
    base_dir: str,
    max_bytes: Optional[int],
) -> Optional[StreamTracer]:
    """Factory helper that respects the global enable flag."""
    if not enabled:
        return None
    return StreamTracer(request_id=request_id, model=model, base_dir=base_dir, max_bytes=max_bytes)
