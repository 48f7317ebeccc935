"""Run one external formatting command against a buffer snapshot."""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from nyne.lib.domain import NAME_PLACEHOLDER
from nyne.lib.exec.errors import CommandTimeoutError, IOFailureError, ProcessFailureError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nyne.lib.domain import Command

TEMP_PREFIX = "nyne"
logger = structlog.get_logger(__name__)


def substitute_name(args: Sequence[str], name: str) -> list[str]:
    """Replace every argument that is exactly `$NAME` with `name`."""

    return [name if arg == NAME_PLACEHOLDER else arg for arg in args]


@contextmanager
def snapshot_file(snapshot: bytes, extension: str) -> Iterator[Path]:
    """Yield a fresh temp file holding `snapshot`; it is removed on exit."""

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=extension)
    except OSError as exc:
        raise IOFailureError(f"could not create temp file: {exc}") from exc
    tmp_path = Path(tmp_name)

    try:
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(snapshot)
        except OSError as exc:
            raise IOFailureError(f"could not write temp file {tmp_path}: {exc}") from exc
        yield tmp_path
    finally:
        tmp_path.unlink(missing_ok=True)


def _decode_output(output: bytes) -> str:
    return output.decode("utf-8", errors="replace")


def run_command(
    snapshot: bytes,
    command: Command,
    extension: str,
    *,
    timeout_seconds: float | None = None,
) -> bytes:
    """Run `command` on `snapshot` and return the formatted bytes.

    The snapshot is written to a temp file substituted for `$NAME` and is
    also supplied on stdin. Commands that print to stdout yield their
    combined output; others are expected to rewrite the temp file in place.
    """

    with snapshot_file(snapshot, extension) as tmp_path:
        argv = [command.executable, *substitute_name(command.args, str(tmp_path))]
        logger.debug("running format command", argv=argv)
        try:
            completed = subprocess.run(
                argv,
                input=snapshot,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
                timeout=timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeoutError(command.executable, exc.timeout) from exc
        except OSError as exc:
            raise ProcessFailureError(
                command.executable,
                exit_code=None,
                output=str(exc),
            ) from exc

        if completed.returncode != 0:
            raise ProcessFailureError(
                command.executable,
                exit_code=completed.returncode,
                output=_decode_output(completed.stdout),
            )

        if command.prints_to_stdout:
            result = completed.stdout
        else:
            try:
                result = tmp_path.read_bytes()
            except OSError as exc:
                raise IOFailureError(f"could not read temp file {tmp_path}: {exc}") from exc

    if result == snapshot:
        return snapshot
    return result
