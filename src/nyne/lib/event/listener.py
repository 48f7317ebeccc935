"""Acme event listener: one event loop per open window."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from nyne.lib.event.fsys import Fsys
from nyne.lib.event.ninep import OREAD
from nyne.lib.event.protocol import EventFormatError, EventReader, format_event
from nyne.lib.event.win import AcmeWin
from nyne.lib.exec.errors import IOFailureError, ListenerFatalError
from nyne.lib.types import BufferId

if TYPE_CHECKING:
    from nyne.lib.domain import Event
    from nyne.lib.event.hooks import EventHook, KeyHook, WinHook
    from nyne.lib.event.ninep import Fid
    from nyne.lib.event.protocol import EventMessage

logger = structlog.get_logger(__name__)

PUT_COMMAND = "Put"


def parse_log_line(line: str) -> tuple[BufferId, str, str] | None:
    """Split an `acme/log` line into window id, operation and name."""

    parts = line.strip().split(" ", 2)
    if len(parts) < 2:
        return None
    try:
        buffer_id = BufferId(int(parts[0]))
    except ValueError:
        return None
    name = parts[2] if len(parts) == 3 else ""
    return buffer_id, parts[1], name


def parse_index(text: str) -> list[tuple[BufferId, str]]:
    """Window ids and names from `acme/index`."""

    windows: list[tuple[BufferId, str]] = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 5:
            continue
        try:
            buffer_id = BufferId(int(fields[0]))
        except ValueError:
            continue
        windows.append((buffer_id, fields[5] if len(fields) > 5 else ""))
    return windows


class AcmeEventLoop:
    """Owns one window's event file and dispatches its events in order."""

    def __init__(
        self,
        listener: AcmeListener,
        window: AcmeWin,
        mount: Callable[[], Fsys],
    ) -> None:
        self._listener = listener
        self._window = window
        self._mount = mount
        self._fsys: Fsys | None = None
        self._stopped = threading.Event()

    @property
    def window(self) -> AcmeWin:
        return self._window

    def start(self) -> None:
        self._fsys = self._mount()
        try:
            events = self._fsys.open(f"{self._window.id}/event", OREAD)
        except IOFailureError:
            self._fsys.close()
            raise
        thread = threading.Thread(
            target=self._run,
            args=(events,),
            name=f"nyne-win-{self._window.id}",
            daemon=True,
        )
        thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._fsys is not None:
            self._fsys.close()
        self._window.close()

    def _run(self, events: Fid) -> None:
        reader = EventReader(events.read)
        while not self._stopped.is_set():
            try:
                message = reader.next_event()
            except (EOFError, IOFailureError) as exc:
                if not self._stopped.is_set():
                    logger.debug("event stream ended", buffer_id=self._window.id, error=str(exc))
                break
            except EventFormatError as exc:
                logger.warning("malformed acme event", buffer_id=self._window.id, error=str(exc))
                break
            self.dispatch(message)
        self._listener.forget(self._window.id, self)

    def dispatch(self, message: EventMessage) -> None:
        """Run hooks for one event and hand execute/look events back to acme."""

        if message.kind in {"x", "X"}:
            event = message.to_event(self._window.id, self._window.file)
            if message.command == PUT_COMMAND:
                try:
                    self._window.refresh_file()
                except IOFailureError as exc:
                    logger.debug("tag read failed", buffer_id=self._window.id, error=str(exc))
                event = self._listener.run_put_hooks(
                    message.to_event(self._window.id, self._window.file)
                )
            self._write_back(event)
            return
        if message.kind in {"l", "L"}:
            self._write_back(message.to_event(self._window.id, self._window.file))
            return
        event = message.to_event(self._window.id, self._window.file)
        if event.is_key_insert:
            self._listener.run_key_hooks(event)

    def _write_back(self, event: Event) -> None:
        try:
            self._window.write_event(format_event(event.origin, event.kind, event.q0, event.q1))
        except IOFailureError as exc:
            logger.warning("event write-back failed", buffer_id=self._window.id, error=str(exc))


class AcmeListener:
    """Watches `acme/log` and keeps an event loop for every open window."""

    def __init__(self, *, mount: Callable[[], Fsys] = Fsys.mount) -> None:
        self._mount = mount
        self._fsys: Fsys | None = None
        self._lock = threading.Lock()
        self._loops: dict[BufferId, AcmeEventLoop] = {}
        self._open_hooks: list[WinHook] = []
        self._put_hooks: list[EventHook] = []
        self._key_hooks: list[KeyHook] = []

    def register_open_hook(self, hook: WinHook) -> None:
        self._open_hooks.append(hook)

    def register_put_hook(self, hook: EventHook) -> None:
        self._put_hooks.append(hook)

    def register_key_hook(self, hook: KeyHook) -> None:
        self._key_hooks.append(hook)

    def get_event_loop_by_id(self, buffer_id: BufferId) -> AcmeEventLoop | None:
        with self._lock:
            return self._loops.get(buffer_id)

    def forget(self, buffer_id: BufferId, loop: AcmeEventLoop) -> None:
        with self._lock:
            if self._loops.get(buffer_id) is loop:
                del self._loops[buffer_id]

    def listen(self) -> None:
        """Block dispatching acme events; raises `ListenerFatalError` if the log is lost."""

        mounted: list[Fsys] = []
        try:
            self._fsys = self._mount()
            mounted.append(self._fsys)
            log_fsys = self._mount()
            mounted.append(log_fsys)
            log = log_fsys.open("log", OREAD)
            index = self._fsys.read_file("index").decode("utf-8", errors="replace")
        except IOFailureError as exc:
            for fsys in mounted:
                fsys.close()
            self._fsys = None
            raise ListenerFatalError(f"cannot attach to acme: {exc}") from exc

        for buffer_id, name in parse_index(index):
            self.attach(buffer_id, name)

        pending = ""
        while True:
            try:
                data = log.read()
            except IOFailureError as exc:
                raise ListenerFatalError(f"acme log read failed: {exc}") from exc
            if not data:
                raise ListenerFatalError("acme log closed")
            pending += data.decode("utf-8", errors="replace")
            *lines, pending = pending.split("\n")
            for line in lines:
                self.handle_log_line(line)

    def handle_log_line(self, line: str) -> None:
        parsed = parse_log_line(line)
        if parsed is None:
            return
        buffer_id, op, name = parsed
        if op == "new":
            loop = self.attach(buffer_id, name)
            if loop is not None:
                self.run_open_hooks(loop.window)
            return
        if op == "del":
            self.detach(buffer_id)
            return
        if name:
            existing = self.get_event_loop_by_id(buffer_id)
            if existing is not None:
                existing.window.rename(name)

    def attach(self, buffer_id: BufferId, name: str) -> AcmeEventLoop | None:
        """Start an event loop for a window; windows already owned elsewhere are skipped."""

        if self._fsys is None:
            raise ListenerFatalError("listener is not attached to acme")
        loop = AcmeEventLoop(self, AcmeWin(self._fsys, buffer_id, name), self._mount)
        try:
            loop.start()
        except IOFailureError as exc:
            logger.debug("window not attached", buffer_id=buffer_id, file=name, error=str(exc))
            return None
        with self._lock:
            previous = self._loops.pop(buffer_id, None)
            self._loops[buffer_id] = loop
        if previous is not None:
            previous.stop()
        logger.debug("window attached", buffer_id=buffer_id, file=name)
        return loop

    def detach(self, buffer_id: BufferId) -> None:
        with self._lock:
            loop = self._loops.pop(buffer_id, None)
        if loop is not None:
            loop.stop()

    def run_open_hooks(self, window: AcmeWin) -> None:
        for hook in self._open_hooks:
            try:
                hook.handler(window)
            except Exception:
                logger.exception("open hook failed", buffer_id=window.id)

    def run_put_hooks(self, event: Event) -> Event:
        for hook in self._put_hooks:
            try:
                event = hook.handler(event)
            except Exception:
                logger.exception("put hook failed", buffer_id=event.id)
        return event

    def run_key_hooks(self, event: Event) -> None:
        for hook in self._key_hooks:
            if hook.key != event.text:
                continue
            try:
                hook.handler(event)
            except Exception:
                logger.exception("key hook failed", buffer_id=event.id)
