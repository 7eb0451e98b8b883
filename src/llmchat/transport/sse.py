"""
Event-stream decoding for streaming turns.

The backend writes one event per line, `data: <json>`. Chunks from the
socket split lines anywhere (inside the prefix, inside JSON, between `\\r`
and `\\n`), so the decoder keeps the unterminated tail of the buffer
between feeds and only ever parses complete lines. Feeding the same bytes
in any chunking yields the same events.
"""

import codecs
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterable, Optional

from llmchat.errors import ProtocolDecodeWarning

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "

DELTA = "delta"
DONE = "done"
ERROR = "error"


class StreamEvent:
    __slots__ = ("type", "content", "error", "implicit")

    def __init__(self, type: str, content: str = "", error: Optional[str] = None, implicit: bool = False):
        self.type = type
        self.content = content
        self.error = error
        self.implicit = implicit

    @property
    def terminal(self) -> bool:
        return self.type in (DONE, ERROR)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StreamEvent):
            return NotImplemented
        return (self.type, self.content, self.error, self.implicit) == (
            other.type, other.content, other.error, other.implicit,
        )

    def __repr__(self) -> str:
        if self.type == DELTA:
            return f"StreamEvent(delta, {self.content!r})"
        if self.type == ERROR:
            return f"StreamEvent(error, {self.error!r})"
        return f"StreamEvent(done, implicit={self.implicit})"


def delta(content: str) -> StreamEvent:
    return StreamEvent(DELTA, content=content)


def done(implicit: bool = False) -> StreamEvent:
    return StreamEvent(DONE, implicit=implicit)


def error(message: str) -> StreamEvent:
    return StreamEvent(ERROR, error=message)


class StreamDecoder:
    def __init__(self) -> None:
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._finished = False
        self.warnings: list[ProtocolDecodeWarning] = []

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Append a chunk and return the events of every line it completed.

        Nothing is returned once a terminal event has been produced.
        """
        if self._finished:
            return []
        self._buffer += self._text.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        events: list[StreamEvent] = []
        for line in lines:
            events.extend(self._decode_line(line.rstrip("\r")))
            if events and events[-1].terminal:
                self._finished = True
                break
        return events

    def close(self) -> list[StreamEvent]:
        """End of transport. Yields the implicit `done` unless a terminal event was already seen."""
        if self._finished:
            return []
        self._finished = True
        tail = self._buffer + self._text.decode(b"", final=True)
        if tail.strip():
            logger.debug(f"Dropping unterminated stream fragment: {tail[:200]!r}")
        self._buffer = ""
        return [done(implicit=True)]

    async def decode(self, chunks: AsyncIterable[bytes]) -> AsyncGenerator[StreamEvent, None]:
        """Drive the decoder from an async byte source, stopping at the first terminal event."""
        async for chunk in chunks:
            for event in self.feed(chunk):
                yield event
            if self._finished:
                return
        for event in self.close():
            yield event

    def _decode_line(self, line: str) -> list[StreamEvent]:
        if not line.startswith(DATA_PREFIX):
            return []  # heartbeat comments, blank separators
        raw = line[len(DATA_PREFIX):]
        if not raw.strip():
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            self._warn(f"Malformed event payload: {e}", raw)
            return []
        if not isinstance(payload, dict):
            self._warn("Event payload is not an object", raw)
            return []
        return _events_for(payload)

    def _warn(self, message: str, raw: str) -> None:
        warning = ProtocolDecodeWarning(message, raw)
        self.warnings.append(warning)
        logger.warning(f"{message}; dropped line: {raw[:200]!r}")


def _events_for(payload: dict[str, Any]) -> list[StreamEvent]:
    if payload.get("error"):
        return [error(str(payload["error"]))]
    events: list[StreamEvent] = []
    content = payload.get("content")
    if content is not None:
        events.append(delta(content if isinstance(content, str) else str(content)))
    if payload.get("done") is True:
        events.append(done())
    return events
