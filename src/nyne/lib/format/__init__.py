"""Formatting rules applied to acme windows."""

from nyne.lib.format.formatter import Formatter
from nyne.lib.format.keymap import Keymap, KeymapPolicy
from nyne.lib.format.resolver import DEFAULT_EXTENSION, ExtensionTable
from nyne.lib.format.writer import write_updates

__all__ = [
    "DEFAULT_EXTENSION",
    "ExtensionTable",
    "Formatter",
    "Keymap",
    "KeymapPolicy",
    "write_updates",
]
