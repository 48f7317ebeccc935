"""Minimal 9P2000 client for talking to acme's file server."""

from __future__ import annotations

import contextlib
import itertools
import os
import socket
import struct
import threading
from dataclasses import dataclass
from pathlib import Path

from nyne.lib.exec.errors import IOFailureError

VERSION = "9P2000"
MSIZE = 8192
IOHDRSZ = 24
NOTAG = 0xFFFF
NOFID = 0xFFFFFFFF

OREAD = 0
OWRITE = 1
ORDWR = 2

TVERSION = 100
TATTACH = 104
RERROR = 107
TWALK = 110
TOPEN = 112
TREAD = 116
TWRITE = 118
TCLUNK = 120

_HEADER = struct.Struct("<IBH")


def namespace_dir() -> Path:
    """Directory holding plan9port service sockets (`$NAMESPACE`)."""

    explicit = os.getenv("NAMESPACE")
    if explicit:
        return Path(explicit)
    user = os.getenv("USER") or os.getenv("LOGNAME") or "none"
    display = os.getenv("DISPLAY", ":0")
    if display.endswith(".0"):
        display = display[:-2]
    return Path(f"/tmp/ns.{user}.{display}")


def pack_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<H", len(encoded)) + encoded


def unpack_string(payload: bytes, offset: int) -> tuple[str, int]:
    (length,) = struct.unpack_from("<H", payload, offset)
    start = offset + 2
    return payload[start : start + length].decode("utf-8", errors="replace"), start + length


@dataclass(frozen=True, slots=True)
class Message:
    """One decoded 9P reply."""

    type: int
    tag: int
    body: bytes


class Conn:
    """One 9P connection; requests are serialized."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._lock = threading.Lock()
        self._fids = itertools.count(1)
        self._msize = MSIZE

    @classmethod
    def dial(cls, service: str, *, uname: str | None = None) -> Conn:
        address = namespace_dir() / service
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(address))
        except OSError as exc:
            sock.close()
            raise IOFailureError(f"cannot dial {address}: {exc}") from exc
        conn = cls(sock)
        conn._version()
        conn._attach(uname or os.getenv("USER") or "none")
        return conn

    @property
    def iounit(self) -> int:
        return self._msize - IOHDRSZ

    def new_fid(self) -> int:
        return next(self._fids)

    def close(self) -> None:
        # shutdown wakes a thread blocked in recv on this socket.
        with contextlib.suppress(OSError):
            self._sock.shutdown(socket.SHUT_RDWR)
        self._sock.close()

    def rpc(self, type_: int, body: bytes, *, tag: int = 1) -> bytes:
        packet = _HEADER.pack(_HEADER.size + len(body), type_, tag) + body
        with self._lock:
            try:
                self._sock.sendall(packet)
                reply = self._recv()
            except OSError as exc:
                raise IOFailureError(f"9p connection failed: {exc}") from exc
        if reply.type == RERROR:
            message, _ = unpack_string(reply.body, 0)
            raise IOFailureError(message)
        if reply.type != type_ + 1:
            raise IOFailureError(f"unexpected 9p reply type {reply.type} for {type_}")
        return reply.body

    def _recv_exact(self, count: int) -> bytes:
        chunks: list[bytes] = []
        remaining = count
        while remaining > 0:
            chunk = self._sock.recv(remaining)
            if not chunk:
                raise OSError("connection closed by file server")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _recv(self) -> Message:
        header = self._recv_exact(_HEADER.size)
        size, type_, tag = _HEADER.unpack(header)
        body = self._recv_exact(size - _HEADER.size)
        return Message(type=type_, tag=tag, body=body)

    def _version(self) -> None:
        body = self.rpc(TVERSION, struct.pack("<I", MSIZE) + pack_string(VERSION), tag=NOTAG)
        (msize,) = struct.unpack_from("<I", body, 0)
        version, _ = unpack_string(body, 4)
        if version != VERSION:
            raise IOFailureError(f"file server speaks {version!r}, not {VERSION}")
        self._msize = min(msize, MSIZE)

    def _attach(self, uname: str) -> None:
        self.rpc(TATTACH, struct.pack("<II", 0, NOFID) + pack_string(uname) + pack_string(""))

    def walk_open(self, path: str, mode: int) -> Fid:
        fid = self.new_fid()
        names = [name for name in path.split("/") if name]
        body = struct.pack("<IIH", 0, fid, len(names))
        body += b"".join(pack_string(name) for name in names)
        reply = self.rpc(TWALK, body)
        (nwqid,) = struct.unpack_from("<H", reply, 0)
        if nwqid != len(names):
            raise IOFailureError(f"{path}: file does not exist")
        try:
            self.rpc(TOPEN, struct.pack("<IB", fid, mode))
        except IOFailureError:
            self.rpc(TCLUNK, struct.pack("<I", fid))
            raise
        return Fid(self, fid, path)


class Fid:
    """An open file on a 9P connection."""

    def __init__(self, conn: Conn, fid: int, path: str) -> None:
        self._conn = conn
        self._fid = fid
        self.path = path
        self._offset = 0
        self._closed = False

    def read(self, count: int | None = None) -> bytes:
        size = min(count or self._conn.iounit, self._conn.iounit)
        reply = self._conn.rpc(TREAD, struct.pack("<IQI", self._fid, self._offset, size))
        (length,) = struct.unpack_from("<I", reply, 0)
        data = reply[4 : 4 + length]
        self._offset += len(data)
        return data

    def read_all(self) -> bytes:
        chunks: list[bytes] = []
        while True:
            data = self.read()
            if not data:
                return b"".join(chunks)
            chunks.append(data)

    def write(self, data: bytes) -> None:
        step = self._conn.iounit
        for start in range(0, len(data), step) if data else (0,):
            chunk = data[start : start + step]
            body = struct.pack("<IQI", self._fid, self._offset, len(chunk)) + chunk
            reply = self._conn.rpc(TWRITE, body)
            (written,) = struct.unpack_from("<I", reply, 0)
            self._offset += written

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._conn.rpc(TCLUNK, struct.pack("<I", self._fid))

    def __enter__(self) -> Fid:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
