"""Formatting hooks for the acme editor."""

__version__ = "0.1.0"
