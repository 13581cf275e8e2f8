"""
Incremental parser for Server-Sent Events (SSE).
Turns an arbitrarily chunked byte stream into complete events, keeping any
unfinished tail buffered until the bytes that complete it arrive.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterator

import httpx

from netservice._errors import SSEDecodeError

# Universal newlines: CRLF must be matched before a lone CR.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """
    Data structure representing a single Server-Sent Event (SSE).
    Every field is optional; ``retry`` is kept as the raw text sent by the server.
    """

    id: str | None = None
    event: str | None = None
    data: str | None = None
    retry: str | None = None

    def json(self) -> Any:
        """Parse ``data`` as JSON, or return None when the event carried no data."""
        if self.data is None:
            return None
        return json.loads(self.data)


@dataclass(slots=True)
class _PendingEvent:
    id: str | None = None
    event: str | None = None
    data: str | None = None
    retry: str | None = None

    def is_empty(self) -> bool:
        return self.id is None and self.event is None and self.data is None and self.retry is None

    def apply(self, line: str) -> None:
        """Fold one non-blank line into the pending event."""
        if line.startswith(":"):
            return

        name, sep, value = line.partition(":")
        if not sep:
            return
        value = value.strip()

        if name == "id":
            self.id = value
        elif name == "event":
            self.event = value
        elif name == "data":
            self.data = (self.data or "") + value + "\n"
        elif name == "retry":
            self.retry = value

    def freeze(self) -> SSEEvent:
        return SSEEvent(id=self.id, event=self.event, data=self.data, retry=self.retry)

    @classmethod
    def thaw(cls, event: SSEEvent) -> _PendingEvent:
        return cls(id=event.id, event=event.event, data=event.data, retry=event.retry)


@dataclass(frozen=True, slots=True)
class DecoderState:
    """
    Unconsumed suffix of every byte fed so far.

    The first ``scanned`` bytes of ``buffer`` are complete lines already folded
    into ``pending``. ``after_cr`` is set when those lines end with a CR at the
    very end of the buffer, so a LF arriving next completes that CRLF instead
    of opening a blank line.
    """

    buffer: bytes = b""
    pending: SSEEvent = SSEEvent()
    scanned: int = 0
    after_cr: bool = False


def _decode_utf8(buffer: bytes) -> str:
    """
    Decode the buffer, leaving out a multi-byte sequence cut off at the end.

    Raises:
        SSEDecodeError: If the buffer holds an invalid UTF-8 sequence.
    """
    try:
        return buffer.decode("utf-8")
    except UnicodeDecodeError as e:
        if e.reason == "unexpected end of data" and e.end == len(buffer):
            # The rest of the character is still in flight.
            return buffer[: e.start].decode("utf-8")
        raise SSEDecodeError(f"event stream is not valid UTF-8: {e}") from e


def feed(state: DecoderState, chunk: bytes) -> tuple[DecoderState, list[SSEEvent]]:
    """
    Append ``chunk`` to the buffer and extract every complete event.

    Only the bytes after ``state.scanned`` are decoded and scanned, so each
    byte is parsed once however the stream is chunked.

    Args:
        state: Decoder state produced by the previous call.
        chunk: Next bytes received from the transport.

    Returns:
        The new state and the events completed by this chunk, in wire order.

    Raises:
        SSEDecodeError: If the buffered bytes are not valid UTF-8.
    """
    if not chunk:
        return state, []

    chunk = bytes(chunk)
    buffer = state.buffer + chunk
    scanned = state.scanned
    if state.after_cr and chunk.startswith(b"\n"):
        scanned += 1

    if b"\n" not in chunk and b"\r" not in chunk:
        # No new line can have been terminated.
        return DecoderState(buffer=buffer, pending=state.pending, scanned=scanned), []

    text = _decode_utf8(buffer[scanned:])
    pending = _PendingEvent.thaw(state.pending)
    events: list[SSEEvent] = []
    start = 0
    cut: int | None = None

    for match in _LINE_BREAK.finditer(text):
        line = text[start : match.start()]
        start = match.end()

        if line:
            pending.apply(line)
            continue
        if not pending.is_empty():
            events.append(pending.freeze())
            pending = _PendingEvent()
        # Everything up to this blank line is either emitted or contributed nothing.
        cut = start

    scanned += len(text[:start].encode("utf-8"))
    if cut is not None:
        drop = scanned - len(text[cut:start].encode("utf-8"))
        buffer = buffer[drop:]
        scanned -= drop

    return (
        DecoderState(
            buffer=buffer,
            pending=pending.freeze(),
            scanned=scanned,
            after_cr=scanned == len(buffer) and text[:start].endswith("\r"),
        ),
        events,
    )


class SSEDecoder:
    """
    Stateful wrapper around :func:`feed`, owned by a single stream.

    Not safe to feed from concurrent callers.
    """

    def __init__(self) -> None:
        self._state = DecoderState()

    @property
    def buffer(self) -> bytes:
        return self._state.buffer

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        self._state, events = feed(self._state, chunk)
        return events


def iter_sse_events_from_text(text: str) -> Iterator[SSEEvent]:
    """
    Parse SSE events from a complete text block.

    Args:
        text: The raw string containing one or multiple SSE events.

    Yields:
        SSEEvent objects in wire order. A trailing unterminated event is dropped.
    """
    yield from SSEDecoder().feed(text.encode("utf-8"))


async def aiter_sse_events(response: httpx.Response) -> AsyncIterator[SSEEvent]:
    """Decode events from a streaming httpx response as its bytes arrive."""
    decoder = SSEDecoder()
    async for chunk in response.aiter_bytes():
        for event in decoder.feed(chunk):
            yield event
