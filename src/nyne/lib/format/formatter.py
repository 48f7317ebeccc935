"""Hook orchestration: resolve specs, run format commands, write buffers back."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from nyne.lib.event.hooks import EventHook, WinHook
from nyne.lib.exec.errors import ListenerFatalError, NyneError, StaleBufferError
from nyne.lib.exec.runner import run_command
from nyne.lib.format.keymap import Keymap
from nyne.lib.format.resolver import ExtensionTable
from nyne.lib.format.writer import write_updates

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nyne.lib.config.settings import NyneConfig
    from nyne.lib.domain import Command, Event, Spec
    from nyne.lib.ports import Listener, Window
    from nyne.lib.types import BufferId, ExtensionKey

BUILTIN_MENU: tuple[str, ...] = ("Get", "Undo", "Redo")
MENU_SEPARATOR = "|"
DEFAULT_INDENT = 8
logger = structlog.get_logger(__name__)


def menu_entry(entry: str) -> str:
    if " " in entry:
        return f"({entry})"
    return entry


def menu_text(menu: Sequence[str]) -> str:
    """Render built-in items, a separator, then the configured entries."""

    items = [*BUILTIN_MENU, MENU_SEPARATOR, *(menu_entry(entry) for entry in menu)]
    return " ".join(items)


class Formatter:
    """Applies configured formatting rules to acme windows.

    Construction registers the open, put and key hooks with `listener`.
    Hook handlers never raise into the listener.
    """

    def __init__(self, config: NyneConfig, listener: Listener) -> None:
        self._table = ExtensionTable.from_config(config)
        self._menu = config.menu
        self._timeout_seconds = config.command_timeout_seconds
        self._listener = listener

        listener.register_open_hook(WinHook(handler=self.on_open))
        listener.register_put_hook(EventHook(handler=self.on_put))
        listener.register_key_hook(Keymap(self).tabexpand())

    def resolve(self, path: str) -> tuple[Spec, ExtensionKey]:
        return self._table.resolve(path)

    def run(self) -> None:
        """Listen for acme events until the stream ends; losing it is fatal."""

        try:
            self._listener.listen()
        except ListenerFatalError as exc:
            logger.critical("acme event stream lost", error=str(exc))
            raise SystemExit(1) from exc

    def on_open(self, window: Window) -> None:
        spec, _ = self.resolve(window.file)
        if spec.configured:
            try:
                self.setup_formatting(window, spec)
            except NyneError as exc:
                logger.warning(
                    "formatting setup failed",
                    buffer_id=window.id,
                    file=window.file,
                    error=str(exc),
                )
        try:
            self.write_menu(window)
        except NyneError as exc:
            logger.warning("menu write failed", buffer_id=window.id, error=str(exc))

    def on_put(self, event: Event) -> Event:
        spec, key = self.resolve(event.file)
        if not spec.configured:
            return event
        try:
            self.exec_cmds(event, spec.commands, key)
        except NyneError as exc:
            logger.warning(
                "format commands failed",
                buffer_id=event.id,
                file=event.file,
                error=str(exc),
            )
        return event

    def setup_formatting(self, window: Window, spec: Spec) -> None:
        """Apply the spec's tab width (and tab expansion) to the window."""

        if not spec.configured:
            return
        window.write_to_tag("\n")
        window.exec_in_tag("Tab", str(spec.indent))
        if spec.tab_expand:
            window.exec_in_tag("Spaces", "on")

    def write_menu(self, window: Window) -> None:
        window.write_to_tag("\n" + menu_text(self._menu))

    def exec_cmds(
        self,
        event: Event,
        commands: Sequence[Command],
        extension: ExtensionKey,
    ) -> None:
        """Run every command, then commit all results; nothing is written on failure."""

        updates: list[bytes] = []
        for command in commands:
            updates.append(self.refmt(event, command, extension))
        write_updates(self._window_for(event.id), updates)
        logger.debug("buffer reformatted", buffer_id=event.id, updates=len(updates))

    def refmt(self, event: Event, command: Command, extension: ExtensionKey) -> bytes:
        """Run one command against the window's current body."""

        old = self._window_for(event.id).read_body()
        return run_command(old, command, extension, timeout_seconds=self._timeout_seconds)

    def _window_for(self, buffer_id: BufferId) -> Window:
        window = self.resolve_window(buffer_id)
        if window is None:
            raise StaleBufferError(buffer_id)
        return window

    # KeymapPolicy

    def resolve_window(self, buffer_id: BufferId) -> Window | None:
        loop = self._listener.get_event_loop_by_id(buffer_id)
        if loop is None:
            return None
        return loop.window

    def resolve_indent(self, event: Event) -> int:
        spec, _ = self.resolve(event.file)
        if not spec.configured:
            return DEFAULT_INDENT
        return spec.indent

    def tab_expand_enabled(self, event: Event) -> bool:
        spec, _ = self.resolve(event.file)
        return spec.tab_expand
