"""Execution engine primitives."""

from nyne.lib.exec.errors import (
    CommandTimeoutError,
    IOFailureError,
    ListenerFatalError,
    NyneError,
    ProcessFailureError,
    StaleBufferError,
)
from nyne.lib.exec.runner import run_command, snapshot_file, substitute_name

__all__ = [
    "CommandTimeoutError",
    "IOFailureError",
    "ListenerFatalError",
    "NyneError",
    "ProcessFailureError",
    "StaleBufferError",
    "run_command",
    "snapshot_file",
    "substitute_name",
]
