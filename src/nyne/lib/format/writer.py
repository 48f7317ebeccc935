"""Commit full-content replacements to a live window."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nyne.lib.ports import Window

WHOLE_BODY = ","


def write_updates(window: Window, updates: Sequence[bytes]) -> None:
    """Replace the whole body once per update, in order.

    Best effort: the first failing write propagates and later updates are
    not applied.
    """

    for update in updates:
        window.set_addr(WHOLE_BODY)
        window.set_data(update)
