"""Acme event-file message codec.

Each message is `c1 c2 q0 q1 flag nr text\\n`, where `c1` is the origin,
`c2` the kind, and `text` is `nr` runes long (and may contain newlines).
"""

from __future__ import annotations

import codecs
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from nyne.lib.domain import Event, EventOrigin

if TYPE_CHECKING:
    from nyne.lib.types import BufferId

FLAG_EXPANDED = 2
FLAG_CHORDED = 8


class EventFormatError(ValueError):
    """Raised for event messages that do not follow acme's format."""


@dataclass(frozen=True, slots=True)
class EventMessage:
    """One logical acme event, with any expansion and chord folded in."""

    origin: str
    kind: str
    q0: int
    q1: int
    flag: int
    text: str
    arg: str = ""

    @property
    def command(self) -> str:
        parts = self.text.split()
        return parts[0] if parts else ""

    def to_event(self, buffer_id: BufferId, file: str) -> Event:
        return Event(
            id=buffer_id,
            file=file,
            origin=cast("EventOrigin", self.origin),
            kind=self.kind,
            q0=self.q0,
            q1=self.q1,
            flag=self.flag,
            text=self.text,
        )


def format_event(origin: str, kind: str, q0: int, q1: int) -> bytes:
    """Encode an event for writing back to acme's event file."""

    return f"{origin}{kind}{q0} {q1}\n".encode()


def parse_message(buffer: str) -> tuple[EventMessage, int] | None:
    """Parse one raw message from the start of `buffer`.

    Returns the message and the number of characters consumed, or None when
    the buffer does not yet hold a complete message.
    """

    if len(buffer) < 2:
        return None
    origin, kind = buffer[0], buffer[1]
    position = 2
    numbers: list[int] = []
    for _ in range(4):
        end = buffer.find(" ", position)
        if end < 0:
            return None
        field = buffer[position:end]
        try:
            numbers.append(int(field))
        except ValueError as error:
            raise EventFormatError(f"bad event field {field!r} in {buffer[:40]!r}") from error
        position = end + 1

    q0, q1, flag, nr = numbers
    if len(buffer) < position + nr + 1:
        return None
    text = buffer[position : position + nr]
    if buffer[position + nr] != "\n":
        raise EventFormatError(f"event text not newline-terminated: {buffer[:40]!r}")
    message = EventMessage(origin=origin, kind=kind, q0=q0, q1=q1, flag=flag, text=text)
    return message, position + nr + 1


class EventReader:
    """Reads logical events from a chunked byte source."""

    def __init__(self, read: Callable[[], bytes]) -> None:
        self._read = read
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def _next_raw(self) -> EventMessage:
        while True:
            parsed = parse_message(self._buffer)
            if parsed is not None:
                message, consumed = parsed
                self._buffer = self._buffer[consumed:]
                return message
            data = self._read()
            if not data:
                raise EOFError("event stream closed")
            self._buffer += self._decoder.decode(data)

    def next_event(self) -> EventMessage:
        message = self._next_raw()
        if message.kind not in {"x", "X", "l", "L"}:
            return message

        text = message.text
        if message.flag & FLAG_EXPANDED:
            text = self._next_raw().text
        arg = ""
        if message.kind in {"x", "X"} and message.flag & FLAG_CHORDED:
            arg = self._next_raw().text
            self._next_raw()  # origin of the chorded argument
        return EventMessage(
            origin=message.origin,
            kind=message.kind,
            q0=message.q0,
            q1=message.q1,
            flag=message.flag,
            text=text,
            arg=arg,
        )
