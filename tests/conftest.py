"""Shared pytest fixtures: window/listener doubles and CLI runner."""

from __future__ import annotations

import os
import re
import subprocess
import sys
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from nyne.lib.exec.errors import IOFailureError, ListenerFatalError
from nyne.lib.types import BufferId

if TYPE_CHECKING:
    from collections.abc import Callable

    from nyne.lib.event.hooks import EventHook, KeyHook, WinHook

PACKAGE_ROOT = Path(__file__).resolve().parents[1]

_RANGE = re.compile(r"^#(\d+)(?:,#(\d+))?$")


class FakeWindow:
    """In-memory window that records every write."""

    def __init__(self, buffer_id: int = 1, file: str = "/src/main.go", body: bytes = b"") -> None:
        self._id = BufferId(buffer_id)
        self._file = file
        self.body = body
        self.tag_writes: list[str] = []
        self.tag_execs: list[tuple[str, ...]] = []
        self.addr_writes: list[str] = []
        self.data_writes: list[bytes] = []
        self.ctl_writes: list[str] = []
        self.fail_data = False
        self.fail_read = False
        self._dot = (0, 0)

    @property
    def id(self) -> BufferId:
        return self._id

    @property
    def file(self) -> str:
        return self._file

    def read_body(self) -> bytes:
        if self.fail_read:
            raise IOFailureError("body read failed")
        return self.body

    def write_to_tag(self, text: str) -> None:
        self.tag_writes.append(text)

    def exec_in_tag(self, command: str, *args: str) -> None:
        self.tag_execs.append((command, *args))

    def set_addr(self, addr: str) -> None:
        self.addr_writes.append(addr)
        text = self.body.decode("utf-8")
        if addr == ",":
            self._dot = (0, len(text))
            return
        match = _RANGE.match(addr)
        assert match is not None, addr
        q0 = int(match.group(1))
        q1 = int(match.group(2)) if match.group(2) is not None else q0
        self._dot = (q0, q1)

    def set_data(self, data: bytes) -> None:
        if self.fail_data:
            raise IOFailureError("data write failed")
        self.data_writes.append(data)
        text = self.body.decode("utf-8")
        q0, q1 = self._dot
        inserted = data.decode("utf-8")
        self.body = (text[:q0] + inserted + text[q1:]).encode("utf-8")
        self._dot = (q0 + len(inserted), q0 + len(inserted))

    def ctl(self, message: str) -> None:
        self.ctl_writes.append(message)


@dataclass
class FakeLoop:
    window: FakeWindow


@dataclass
class FakeListener:
    """Listener double holding registered hooks and a window table."""

    windows: dict[int, FakeWindow] = field(default_factory=dict)
    open_hooks: list[WinHook] = field(default_factory=list)
    put_hooks: list[EventHook] = field(default_factory=list)
    key_hooks: list[KeyHook] = field(default_factory=list)
    fail_listen: bool = False

    def add(self, window: FakeWindow) -> FakeWindow:
        self.windows[window.id] = window
        return window

    def register_open_hook(self, hook: WinHook) -> None:
        self.open_hooks.append(hook)

    def register_put_hook(self, hook: EventHook) -> None:
        self.put_hooks.append(hook)

    def register_key_hook(self, hook: KeyHook) -> None:
        self.key_hooks.append(hook)

    def get_event_loop_by_id(self, buffer_id: BufferId) -> FakeLoop | None:
        window = self.windows.get(buffer_id)
        if window is None:
            return None
        return FakeLoop(window=window)

    def listen(self) -> None:
        if self.fail_listen:
            raise ListenerFatalError("cannot attach to acme")


@pytest.fixture
def package_root() -> Path:
    return PACKAGE_ROOT


@pytest.fixture
def rules_fixture(package_root: Path) -> Path:
    return package_root / "tests" / "fixtures" / "rules" / "nynerules.toml"


@pytest.fixture
def listener() -> FakeListener:
    return FakeListener()


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a small Python program used as a stand-in formatter."""

    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


@dataclass(frozen=True, slots=True)
class CliResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


@pytest.fixture
def cli_env(package_root: Path) -> dict[str, str]:
    env = os.environ.copy()
    existing = env.get("PYTHONPATH", "")
    root = str(package_root / "src")
    env["PYTHONPATH"] = root if not existing else f"{root}:{existing}"
    env.pop("NYNERULES", None)
    env.pop("DEBUG", None)
    return env


@pytest.fixture
def run_nyne(package_root: Path, cli_env: dict[str, str]) -> Callable[..., CliResult]:
    def _run(
        args: list[str],
        *,
        stdin: str = "",
        env: dict[str, str] | None = None,
        timeout: float = 15.0,
    ) -> CliResult:
        completed = subprocess.run(
            [sys.executable, "-m", "nyne", *args],
            cwd=package_root,
            env={**cli_env, **(env or {})},
            input=stdin,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        return CliResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    return _run
