"""Core nyne library exports."""

from nyne.lib.domain import Command, Event, Spec
from nyne.lib.types import BufferId, ExtensionKey

__all__ = ["BufferId", "Command", "Event", "ExtensionKey", "Spec"]
