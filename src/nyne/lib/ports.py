"""Editor capability protocols for dependency inversion."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from nyne.lib.event.hooks import EventHook, KeyHook, WinHook
    from nyne.lib.types import BufferId


class Window(Protocol):
    """Addressable live acme window."""

    @property
    def id(self) -> BufferId: ...

    @property
    def file(self) -> str: ...

    def read_body(self) -> bytes: ...

    def write_to_tag(self, text: str) -> None: ...

    def exec_in_tag(self, command: str, *args: str) -> None: ...

    def set_addr(self, addr: str) -> None: ...

    def set_data(self, data: bytes) -> None: ...

    def ctl(self, message: str) -> None: ...


class EventLoop(Protocol):
    """Per-window event session owned by the listener."""

    @property
    def window(self) -> Window: ...


class Listener(Protocol):
    """Event stream that dispatches acme events to registered hooks."""

    def register_open_hook(self, hook: WinHook) -> None: ...

    def register_put_hook(self, hook: EventHook) -> None: ...

    def register_key_hook(self, hook: KeyHook) -> None: ...

    def get_event_loop_by_id(self, buffer_id: BufferId) -> EventLoop | None: ...

    def listen(self) -> None: ...
