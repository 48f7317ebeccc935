"""Window handle backed by acme's per-window files."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

from nyne.lib.event.ninep import OWRITE
from nyne.lib.event.protocol import format_event
from nyne.lib.exec.errors import IOFailureError

if TYPE_CHECKING:
    from nyne.lib.event.fsys import Fsys
    from nyne.lib.event.ninep import Fid
    from nyne.lib.types import BufferId

logger = structlog.get_logger(__name__)


def name_from_tag(tag: str) -> str:
    parts = tag.split()
    return parts[0] if parts else ""


class AcmeWin:
    """Reads and writes one acme window through the shared file-server connection.

    `addr`, `data` and `event` stay open for the window's lifetime: acme
    resets the address whenever `addr` is first opened.
    """

    def __init__(self, fsys: Fsys, buffer_id: BufferId, file: str = "") -> None:
        self._fsys = fsys
        self._id = buffer_id
        self._file = file
        self._lock = threading.Lock()
        self._fids: dict[str, Fid] = {}

    @property
    def id(self) -> BufferId:
        return self._id

    @property
    def file(self) -> str:
        return self._file

    def rename(self, file: str) -> None:
        self._file = file

    def refresh_file(self) -> str:
        tag = self._fsys.read_file(f"{self._id}/tag").decode("utf-8", errors="replace")
        name = name_from_tag(tag)
        if name:
            self._file = name
        return self._file

    def _held(self, name: str) -> Fid:
        fid = self._fids.get(name)
        if fid is None:
            fid = self._fsys.open(f"{self._id}/{name}", OWRITE)
            self._fids[name] = fid
        return fid

    def read_body(self) -> bytes:
        return self._fsys.read_file(f"{self._id}/body")

    def write_to_tag(self, text: str) -> None:
        self._fsys.write_file(f"{self._id}/tag", text.encode("utf-8"))

    def exec_in_tag(self, command: str, *args: str) -> None:
        """Append `command args` to the tag and have acme execute it."""

        text = " ".join((command, *args))
        tag = self._fsys.read_file(f"{self._id}/tag").decode("utf-8", errors="replace")
        q0 = len(tag)
        self.write_to_tag(text)
        # Lower-case kind addresses the tag rather than the body.
        self.write_event(format_event("M", "x", q0, q0 + len(text)))

    def set_addr(self, addr: str) -> None:
        with self._lock:
            self._held("addr").write(addr.encode("utf-8"))

    def set_data(self, data: bytes) -> None:
        with self._lock:
            self._held("data").write(data)

    def ctl(self, message: str) -> None:
        self._fsys.write_file(f"{self._id}/ctl", message.encode("utf-8"))

    def write_event(self, message: bytes) -> None:
        with self._lock:
            self._held("event").write(message)

    def close(self) -> None:
        with self._lock:
            fids = list(self._fids.values())
            self._fids.clear()
        for fid in fids:
            try:
                fid.close()
            except IOFailureError:
                # The window is usually gone already.
                logger.debug("window file close failed", buffer_id=self._id, path=fid.path)
