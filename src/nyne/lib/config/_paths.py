"""Path resolution for the nyne rules file."""

from __future__ import annotations

import os
from pathlib import Path

RULES_FILENAME = "nynerules.toml"


def resolve_rules_path(explicit: Path | None = None) -> Path:
    """Resolve the rules file location.

    Precedence:
    1. Explicit function argument.
    2. `NYNERULES` environment variable.
    3. `$XDG_CONFIG_HOME/nyne/nynerules.toml` (default `~/.config`).
    """

    if explicit is not None:
        return explicit.expanduser().resolve()

    env_rules = os.getenv("NYNERULES")
    if env_rules:
        return Path(env_rules).expanduser().resolve()

    config_home = os.getenv("XDG_CONFIG_HOME")
    base = Path(config_home).expanduser() if config_home else Path.home() / ".config"
    return (base / "nyne" / RULES_FILENAME).resolve()
