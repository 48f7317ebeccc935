"""Structlog setup for the nyne process and its filter commands."""

from __future__ import annotations

import logging as std_logging
import os
import sys

import structlog

_LEVELS = (std_logging.WARNING, std_logging.INFO, std_logging.DEBUG)


def debug_enabled() -> bool:
    """Return whether `$DEBUG` requests diagnostic logging."""

    return len(os.getenv("DEBUG", "")) > 0


def level_for(verbosity: int) -> int:
    if debug_enabled():
        return std_logging.DEBUG
    return _LEVELS[min(max(verbosity, 0), len(_LEVELS) - 1)]


def configure_logging(json_mode: bool = False, verbosity: int = 0) -> None:
    """Send structlog and stdlib records to stderr at one shared level.

    stdout belongs to acme when nyne runs as a filter (`|nyne dedent`), and
    the listener's stderr usually lands in `+Errors`, so colors are only
    used on a terminal.
    """

    level = level_for(verbosity)
    handler = std_logging.StreamHandler(sys.stderr)
    handler.setFormatter(std_logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    std_logging.basicConfig(level=level, handlers=[handler], force=True)

    renderers: list[structlog.typing.Processor]
    if json_mode:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
