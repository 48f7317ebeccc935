"""Hook descriptors registered with a listener."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nyne.lib.domain import Event
    from nyne.lib.ports import Window


@dataclass(frozen=True, slots=True)
class WinHook:
    """Fires once when a window is opened."""

    handler: Callable[[Window], None]


@dataclass(frozen=True, slots=True)
class EventHook:
    """Fires before acme executes Put; returns the event to hand back to acme."""

    handler: Callable[[Event], Event]


@dataclass(frozen=True, slots=True)
class KeyHook:
    """Fires after a keyboard insertion of `key`."""

    key: str
    handler: Callable[[Event], None]
