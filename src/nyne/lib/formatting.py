"""Shared text-formatting protocol for output dataclasses."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextFormattable(Protocol):
    """Output dataclasses that provide a human-readable text format."""

    def format_text(self) -> str: ...
