"""Command-line interface for nyne."""
