"""Strip one indentation unit from piped text."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nyne.lib.format.resolver import ExtensionTable


class InvalidTabstopError(ValueError):
    """Raised when `$tabstop` is needed but is not a positive integer."""

    def __init__(self, raw_value: str | None) -> None:
        self.raw_value = raw_value
        super().__init__(f"invalid $tabstop: {raw_value!r}")


@dataclass(frozen=True, slots=True)
class IndentUnit:
    """The text one indentation level occupies."""

    width: int
    expand: bool

    @property
    def text(self) -> str:
        return " " * self.width if self.expand else "\t"


def parse_tabstop(raw_value: str | None) -> int:
    if raw_value is None:
        raise InvalidTabstopError(raw_value)
    try:
        width = int(raw_value.strip())
    except ValueError as error:
        raise InvalidTabstopError(raw_value) from error
    if width <= 0:
        raise InvalidTabstopError(raw_value)
    return width


def resolve_indent_unit(
    table: ExtensionTable,
    samfile: str,
    tabstop: str | None,
) -> IndentUnit:
    """Indent unit for `samfile`, falling back to `tabstop` when unconfigured.

    `tabstop` is only parsed when the rules give no indent for the file.
    """

    spec, _ = table.resolve(samfile)
    width = spec.indent
    if width == 0:
        width = parse_tabstop(tabstop)
    return IndentUnit(width=width, expand=spec.tab_expand)


def dedent_line(line: str, unit: IndentUnit) -> str:
    if not line:
        return line
    return line.replace(unit.text, "", 1)


def dedent_lines(lines: Iterable[str], unit: IndentUnit) -> Iterator[str]:
    for line in lines:
        yield dedent_line(line, unit)
