"""Rules-file loader for formatting specs and tag menu entries."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from nyne.lib.domain import Command

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FormatRule:
    """One `[[format]]` table: extensions sharing indent and commands."""

    extensions: tuple[str, ...]
    indent: int = 0
    tabexpand: bool = False
    commands: tuple[Command, ...] = ()


@dataclass(frozen=True, slots=True)
class NyneConfig:
    """Resolved configuration for nyne."""

    formats: tuple[FormatRule, ...] = ()
    menu: tuple[str, ...] = ()
    command_timeout_seconds: float | None = None


_FORMAT_KEYS = frozenset({"extensions", "indent", "tabexpand", "commands"})
_COMMAND_KEYS = frozenset({"exec", "args", "print_to_stdout"})
_TAG_KEYS = frozenset({"menu"})
_SETTINGS_KEYS = frozenset({"command_timeout_seconds"})

_ENV_TIMEOUT = "NYNE_COMMAND_TIMEOUT_SECONDS"


def _coerce_str_list(*, raw_value: object, source: str) -> tuple[str, ...]:
    if not isinstance(raw_value, list):
        raise ValueError(
            f"Invalid value for '{source}': expected array[str], got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    parsed: list[str] = []
    for item in cast("list[object]", raw_value):
        if not isinstance(item, str):
            raise ValueError(
                f"Invalid value for '{source}': expected array[str], got "
                f"{type(item).__name__} ({item!r})."
            )
        parsed.append(item)
    return tuple(parsed)


def _coerce_bool(*, raw_value: object, source: str) -> bool:
    if not isinstance(raw_value, bool):
        raise ValueError(
            f"Invalid value for '{source}': expected bool, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    return raw_value


def _coerce_timeout(*, raw_value: object, source: str) -> float:
    if isinstance(raw_value, bool) or not isinstance(raw_value, int | float):
        raise ValueError(
            f"Invalid value for '{source}': expected float, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    if raw_value <= 0:
        raise ValueError(f"Invalid value for '{source}': expected a positive number.")
    return float(raw_value)


def _coerce_command(*, raw_value: object, source: str) -> Command:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")

    payload = cast("dict[str, object]", raw_value)
    for key in payload:
        if key not in _COMMAND_KEYS:
            logger.warning("Ignoring unknown nyne rules key '%s.%s'.", source, key)

    executable = payload.get("exec")
    if not isinstance(executable, str) or not executable.strip():
        raise ValueError(f"Invalid value for '{source}.exec': expected non-empty string.")

    args: tuple[str, ...] = ()
    if "args" in payload:
        args = _coerce_str_list(raw_value=payload["args"], source=f"{source}.args")

    prints_to_stdout = False
    if "print_to_stdout" in payload:
        prints_to_stdout = _coerce_bool(
            raw_value=payload["print_to_stdout"],
            source=f"{source}.print_to_stdout",
        )

    return Command(
        executable=executable.strip(),
        args=args,
        prints_to_stdout=prints_to_stdout,
    )


def _coerce_format_rule(*, raw_value: object, source: str) -> FormatRule:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")

    payload = cast("dict[str, object]", raw_value)
    for key in payload:
        if key not in _FORMAT_KEYS:
            logger.warning("Ignoring unknown nyne rules key '%s.%s'.", source, key)

    if "extensions" not in payload:
        raise ValueError(f"Missing value for '{source}.extensions'.")
    extensions = _coerce_str_list(raw_value=payload["extensions"], source=f"{source}.extensions")
    for extension in extensions:
        if not extension.strip():
            raise ValueError(
                f"Invalid value for '{source}.extensions': expected non-empty entries."
            )

    indent = payload.get("indent", 0)
    if isinstance(indent, bool) or not isinstance(indent, int) or indent < 0:
        raise ValueError(
            f"Invalid value for '{source}.indent': expected non-negative int, got "
            f"{type(indent).__name__} ({indent!r})."
        )

    tabexpand = False
    if "tabexpand" in payload:
        tabexpand = _coerce_bool(raw_value=payload["tabexpand"], source=f"{source}.tabexpand")

    commands: list[Command] = []
    raw_commands = payload.get("commands", [])
    if not isinstance(raw_commands, list):
        raise ValueError(f"Invalid value for '{source}.commands': expected array of tables.")
    for index, raw_command in enumerate(cast("list[object]", raw_commands)):
        commands.append(
            _coerce_command(raw_value=raw_command, source=f"{source}.commands[{index}]")
        )

    return FormatRule(
        extensions=extensions,
        indent=indent,
        tabexpand=tabexpand,
        commands=tuple(commands),
    )


def _coerce_tag(*, raw_value: object, source: str) -> tuple[str, ...]:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")

    menu: tuple[str, ...] = ()
    for key, value in cast("dict[str, object]", raw_value).items():
        if key not in _TAG_KEYS:
            logger.warning("Ignoring unknown nyne rules key '%s.%s'.", source, key)
            continue
        menu = _coerce_str_list(raw_value=value, source=f"{source}.{key}")
    return menu


def _coerce_settings(*, raw_value: object, source: str) -> float | None:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")

    timeout: float | None = None
    for key, value in cast("dict[str, object]", raw_value).items():
        if key not in _SETTINGS_KEYS:
            logger.warning("Ignoring unknown nyne rules key '%s.%s'.", source, key)
            continue
        timeout = _coerce_timeout(raw_value=value, source=f"{source}.{key}")
    return timeout


def parse_rules(payload: dict[str, object]) -> NyneConfig:
    """Build a config from an already-decoded rules document."""

    formats: list[FormatRule] = []
    menu: tuple[str, ...] = ()
    timeout: float | None = None

    for key, raw_value in payload.items():
        if key == "format":
            if not isinstance(raw_value, list):
                raise ValueError("Invalid value for 'format': expected array of tables.")
            for index, raw_rule in enumerate(cast("list[object]", raw_value)):
                formats.append(_coerce_format_rule(raw_value=raw_rule, source=f"format[{index}]"))
            continue
        if key == "tag":
            menu = _coerce_tag(raw_value=raw_value, source="tag")
            continue
        if key == "settings":
            timeout = _coerce_settings(raw_value=raw_value, source="settings")
            continue
        logger.warning("Ignoring unknown nyne rules key '%s'.", key)

    return NyneConfig(formats=tuple(formats), menu=menu, command_timeout_seconds=timeout)


def _apply_env_overrides(config: NyneConfig) -> NyneConfig:
    raw_value = os.getenv(_ENV_TIMEOUT)
    if raw_value is None or not raw_value.strip():
        return config
    try:
        timeout = float(raw_value.strip())
    except ValueError as error:
        raise ValueError(
            f"Invalid environment override '{_ENV_TIMEOUT}': expected float, got {raw_value!r}."
        ) from error
    if timeout <= 0:
        raise ValueError(
            f"Invalid environment override '{_ENV_TIMEOUT}': expected a positive number."
        )
    return NyneConfig(formats=config.formats, menu=config.menu, command_timeout_seconds=timeout)


def load_config(path: Path | None) -> NyneConfig:
    """Load the rules file at `path` and apply environment overrides.

    A missing file yields an empty configuration, which formats nothing.
    """

    config = NyneConfig()
    if path is not None and path.is_file():
        payload_obj = tomllib.loads(path.read_text(encoding="utf-8"))
        config = parse_rules(cast("dict[str, object]", payload_obj))
    elif path is not None:
        logger.warning("nyne rules file '%s' not found; formatting is disabled.", path)

    return _apply_env_overrides(config)
