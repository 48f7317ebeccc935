"""Core frozen domain dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from nyne.lib.types import BufferId

# Acme event origins: E (write to body/tag file), F (other file), K (keyboard), M (mouse).
EventOrigin = Literal["E", "F", "K", "M", ""]

NAME_PLACEHOLDER = "$NAME"


@dataclass(frozen=True, slots=True)
class Command:
    """One external formatting invocation."""

    executable: str
    args: tuple[str, ...] = ()
    prints_to_stdout: bool = False


@dataclass(frozen=True, slots=True)
class Spec:
    """Formatting behavior for one extension.

    `indent == 0` means no formatting is configured; `Spec()` is that zero value.
    """

    indent: int = 0
    tab_expand: bool = False
    commands: tuple[Command, ...] = ()

    @property
    def configured(self) -> bool:
        return self.indent != 0


@dataclass(frozen=True, slots=True)
class Event:
    """One acme event attributed to an open window.

    `id` and `file` identify the buffer; the remaining fields mirror the raw
    event message and are only populated for events read from a window's
    event file.
    """

    id: BufferId
    file: str
    origin: EventOrigin = ""
    kind: str = ""
    q0: int = 0
    q1: int = 0
    flag: int = 0
    text: str = ""

    @property
    def is_execute(self) -> bool:
        return self.kind in {"x", "X"}

    @property
    def is_look(self) -> bool:
        return self.kind in {"l", "L"}

    @property
    def is_key_insert(self) -> bool:
        return self.origin == "K" and self.kind in {"I", "i"}
