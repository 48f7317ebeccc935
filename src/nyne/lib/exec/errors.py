"""Error taxonomy for hook and command execution."""

from __future__ import annotations


class NyneError(Exception):
    """Base class for recoverable-by-layer nyne failures."""


class StaleBufferError(NyneError):
    """Raised when an event id no longer maps to a live window."""

    def __init__(self, buffer_id: int) -> None:
        self.buffer_id = buffer_id
        super().__init__(f"no event loop found for window {buffer_id}")


class IOFailureError(NyneError):
    """Raised for temp-file and window read/write failures."""


class ProcessFailureError(NyneError):
    """Raised when a formatting command cannot launch or exits non-zero."""

    def __init__(
        self,
        executable: str,
        *,
        exit_code: int | None,
        output: str = "",
    ) -> None:
        self.executable = executable
        self.exit_code = exit_code
        self.output = output
        if exit_code is None:
            message = f"{executable}: failed to launch"
        else:
            message = f"{executable}: exited with status {exit_code}"
        detail = output.strip()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CommandTimeoutError(NyneError):
    """Raised when a formatting command exceeds the configured timeout."""

    def __init__(self, executable: str, timeout_seconds: float) -> None:
        self.executable = executable
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{executable}: timed out after {timeout_seconds:.3f}s")


class ListenerFatalError(NyneError):
    """Raised when the acme event stream cannot be attached or is lost."""
