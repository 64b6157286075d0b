"""Server-sent-event decoding for streamed model responses."""

import json
from dataclasses import dataclass
from typing import List

DONE_TOKEN = "[DONE]"


@dataclass(frozen=True)
class StreamDelta:
    kind: str      # "content" or "reasoning"
    text: str


def content(text: str) -> StreamDelta:
    return StreamDelta("content", text)


def reasoning(text: str) -> StreamDelta:
    return StreamDelta("reasoning", text)


class SSEDecoder:
    """
    Incremental `text/event-stream` decoder.

    Raw bytes are buffered until a newline; only `data:` lines are kept,
    `[DONE]` ends the stream and every other payload is parsed as a JSON
    object. Payloads that are not JSON objects are skipped.
    """

    def __init__(self):
        self._buffer = b""
        self.done = False

    def feed(self, chunk: bytes) -> List[dict]:
        if self.done:
            return []
        self._buffer += chunk
        events = []
        while b"\n" in self._buffer and not self.done:
            raw, self._buffer = self._buffer.split(b"\n", 1)
            event = self._decode_line(raw)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[dict]:
        """Decode whatever is left once the connection closes."""
        if self.done or not self._buffer:
            return []
        raw, self._buffer = self._buffer, b""
        event = self._decode_line(raw)
        return [event] if event is not None else []

    def _decode_line(self, raw: bytes):
        line = raw.decode("utf-8", errors="replace").rstrip("\r")
        if not line.startswith("data:"):
            return None
        data = line[len("data:"):].strip()
        if not data:
            return None
        if data == DONE_TOKEN:
            self.done = True
            return None
        try:
            event = json.loads(data)
        except json.JSONDecodeError:
            return None
        return event if isinstance(event, dict) else None
