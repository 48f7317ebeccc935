"""Acme event stream access."""

from nyne.lib.event.hooks import EventHook, KeyHook, WinHook
from nyne.lib.event.listener import AcmeEventLoop, AcmeListener
from nyne.lib.event.win import AcmeWin

__all__ = [
    "AcmeEventLoop",
    "AcmeListener",
    "AcmeWin",
    "EventHook",
    "KeyHook",
    "WinHook",
]
