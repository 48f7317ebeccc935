"""Text or JSON rendering of command results."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Literal

from nyne.lib.formatting import TextFormattable

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True, slots=True)
class OutputConfig:
    format: OutputFormat


def _payload(value: Any) -> Any:
    # asdict already recurses, and json renders tuples as arrays.
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def emit(value: Any, config: OutputConfig) -> None:
    """Print `value` as one JSON line, or as text when it knows how to render itself."""

    if config.format == "json":
        print(json.dumps(_payload(value), sort_keys=True))
        return
    if isinstance(value, TextFormattable):
        print(value.format_text())
    else:
        print(json.dumps(_payload(value), sort_keys=True, indent=2))
