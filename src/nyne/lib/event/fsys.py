"""Acme file-server access built on the 9P client."""

from __future__ import annotations

from nyne.lib.event.ninep import OREAD, OWRITE, Conn, Fid

ACME_SERVICE = "acme"


class Fsys:
    """Read and write files under acme's root (`index`, `log`, `<id>/body`, ...)."""

    def __init__(self, conn: Conn) -> None:
        self._conn = conn

    @classmethod
    def mount(cls, service: str = ACME_SERVICE) -> Fsys:
        return cls(Conn.dial(service))

    def open(self, path: str, mode: int) -> Fid:
        return self._conn.walk_open(path, mode)

    def read_file(self, path: str) -> bytes:
        with self.open(path, OREAD) as fid:
            return fid.read_all()

    def write_file(self, path: str, data: bytes) -> None:
        with self.open(path, OWRITE) as fid:
            fid.write(data)

    def close(self) -> None:
        self._conn.close()
