"""Stable domain identifier newtypes."""

from typing import NewType

BufferId = NewType("BufferId", int)
ExtensionKey = NewType("ExtensionKey", str)
