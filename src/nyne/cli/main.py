"""Cyclopts CLI entry point for nyne."""

from __future__ import annotations

import os
import sys
from contextvars import ContextVar
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from cyclopts import App, Parameter

from nyne import __version__
from nyne.cli.output import OutputConfig
from nyne.cli.output import emit as emit_output
from nyne.lib.config import load_config, resolve_rules_path
from nyne.lib.event import AcmeListener
from nyne.lib.exec.errors import NyneError
from nyne.lib.format import ExtensionTable, Formatter
from nyne.lib.format.dedent import dedent_lines, resolve_indent_unit

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nyne.lib.config.settings import NyneConfig


@dataclass(frozen=True, slots=True)
class ResolveOutput:
    """Spec resolved for one path."""

    path: str
    extension: str
    indent: int
    tab_expand: bool
    commands: tuple[str, ...]

    def format_text(self) -> str:
        lines = [
            f"path: {self.path}",
            f"extension: {self.extension}",
            f"indent: {self.indent}" + ("" if self.indent else " (not formatted)"),
            f"tabexpand: {str(self.tab_expand).lower()}",
        ]
        lines.extend(f"command: {command}" for command in self.commands)
        return "\n".join(lines)


_OUTPUT: ContextVar[OutputConfig | None] = ContextVar("_OUTPUT", default=None)


def emit(payload: object) -> None:
    emit_output(payload, _OUTPUT.get() or OutputConfig(format="text"))


def _extract_global_options(argv: Sequence[str]) -> tuple[list[str], bool, int]:
    json_mode = False
    verbosity = 0
    cleaned: list[str] = []
    for arg in argv:
        if arg == "--json":
            json_mode = True
            continue
        if arg in {"--verbose", "-v"}:
            verbosity += 1
            continue
        cleaned.append(arg)
    return cleaned, json_mode, verbosity


def _load(rules: str | None) -> NyneConfig:
    explicit = Path(rules) if rules else None
    return load_config(resolve_rules_path(explicit))


app = App(
    name="nyne",
    help="Formatting hooks for the acme editor",
    version=__version__,
    help_formatter="plain",
)

RulesOption = Annotated[
    str | None,
    Parameter(name="--rules", help="Rules file (default: $NYNERULES)."),
]


@app.default
def root(rules: RulesOption = None) -> None:
    """Attach to acme and format buffers on open, Put and tab."""

    formatter = Formatter(_load(rules), AcmeListener())
    formatter.run()


@app.command(name="resolve")
def resolve(
    path: Annotated[str, Parameter(help="File path to resolve.")],
    rules: RulesOption = None,
) -> None:
    """Show the formatting spec that applies to a path."""

    table = ExtensionTable.from_config(_load(rules))
    spec, key = table.resolve(path)
    emit(
        ResolveOutput(
            path=path,
            extension=key,
            indent=spec.indent,
            tab_expand=spec.tab_expand,
            commands=tuple(
                " ".join((command.executable, *command.args)) for command in spec.commands
            ),
        )
    )


@app.command(name="dedent")
def dedent(rules: RulesOption = None) -> None:
    """Remove one indentation level from each line of stdin.

    The width comes from the rules for $samfile, or from $tabstop.
    """

    table = ExtensionTable.from_config(_load(rules))
    unit = resolve_indent_unit(table, os.getenv("samfile", ""), os.getenv("tabstop"))
    sys.stdout.writelines(dedent_lines(sys.stdin, unit))
    sys.stdout.flush()


def _error_message(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point used by `nyne` and `python -m nyne`."""

    from nyne.lib.logging import configure_logging

    args = list(sys.argv[1:] if argv is None else argv)
    cleaned_args, json_mode, verbosity = _extract_global_options(args)
    configure_logging(json_mode=json_mode, verbosity=verbosity)

    token = _OUTPUT.set(OutputConfig(format="json" if json_mode else "text"))
    try:
        try:
            app(cleaned_args)
        except (NyneError, ValueError, OSError) as exc:
            print(f"error: {_error_message(exc)}", file=sys.stderr)
            raise SystemExit(1) from None
    finally:
        _OUTPUT.reset(token)
