"""Keystroke interception for tab expansion."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

from nyne.lib.event.hooks import KeyHook
from nyne.lib.exec.errors import NyneError

if TYPE_CHECKING:
    from nyne.lib.domain import Event
    from nyne.lib.ports import Window
    from nyne.lib.types import BufferId

TAB = "\t"
logger = structlog.get_logger(__name__)


class KeymapPolicy(Protocol):
    """Per-buffer lookups the keymap needs from its owner."""

    def resolve_window(self, buffer_id: BufferId) -> Window | None: ...

    def resolve_indent(self, event: Event) -> int: ...

    def tab_expand_enabled(self, event: Event) -> bool: ...


def visual_column(line: str, indent: int) -> int:
    """Column reached after `line`, with tabs advancing to the next stop."""

    column = 0
    for char in line:
        if char == TAB:
            column = (column // indent + 1) * indent
        else:
            column += 1
    return column


def spaces_for_tab(line_prefix: str, indent: int) -> int:
    """Number of spaces a tab typed after `line_prefix` stands for."""

    if indent <= 0:
        return 0
    return indent - visual_column(line_prefix, indent) % indent


class Keymap:
    """Builds key hooks bound to a `KeymapPolicy`."""

    def __init__(self, policy: KeymapPolicy) -> None:
        self._policy = policy

    def tabexpand(self) -> KeyHook:
        return KeyHook(key=TAB, handler=self._expand_tab)

    def _expand_tab(self, event: Event) -> None:
        if not self._policy.tab_expand_enabled(event):
            return
        window = self._policy.resolve_window(event.id)
        if window is None:
            logger.debug("tab expand skipped: window is gone", buffer_id=event.id)
            return
        indent = self._policy.resolve_indent(event)
        try:
            self._replace_tab(window, event.q0, indent)
        except NyneError as exc:
            logger.debug("tab expand failed", buffer_id=event.id, error=str(exc))

    def _replace_tab(self, window: Window, q0: int, indent: int) -> None:
        body = window.read_body().decode("utf-8", errors="replace")
        if body[q0 : q0 + 1] != TAB:
            # The buffer moved on since the keystroke; leave it alone.
            return
        line_start = body.rfind("\n", 0, q0) + 1
        width = spaces_for_tab(body[line_start:q0], indent)
        if width == 0:
            return
        window.set_addr(f"#{q0},#{q0 + 1}")
        window.set_data(b" " * width)
        window.set_addr(f"#{q0 + width}")
        window.ctl("dot=addr")
