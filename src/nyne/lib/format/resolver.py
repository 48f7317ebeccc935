"""Extension-to-spec resolution."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from nyne.lib.domain import Spec
from nyne.lib.types import ExtensionKey

if TYPE_CHECKING:
    from nyne.lib.config.settings import NyneConfig

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ExtensionKey(".txt")
ZERO_SPEC = Spec()


def _empty_specs() -> Mapping[ExtensionKey, Spec]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ExtensionTable:
    """Read-only mapping from extension key to Spec.

    Keys with a leading dot match file suffixes; keys without one
    (`Makefile`, `go.mod`) match whole filenames.
    """

    specs: Mapping[ExtensionKey, Spec] = field(default_factory=_empty_specs)
    bare_names: frozenset[str] = frozenset()
    default_key: ExtensionKey = DEFAULT_EXTENSION

    @classmethod
    def from_config(cls, config: NyneConfig) -> ExtensionTable:
        specs: dict[ExtensionKey, Spec] = {}
        bare_names: set[str] = set()
        for rule in config.formats:
            spec = Spec(indent=rule.indent, tab_expand=rule.tabexpand, commands=rule.commands)
            for extension in rule.extensions:
                key = ExtensionKey(extension)
                if key in specs:
                    logger.warning("Extension '%s' is configured more than once; last rule wins.", key)
                if not extension.startswith("."):
                    bare_names.add(extension)
                specs[key] = spec
        return cls(specs=MappingProxyType(specs), bare_names=frozenset(bare_names))

    def extension_for(self, path: str) -> ExtensionKey:
        """Return the lookup key for `path`."""

        filename = file_name(path)
        if filename in self.bare_names:
            return ExtensionKey(filename)
        if "." not in filename:
            return self.default_key
        return ExtensionKey("." + filename.rsplit(".", 1)[1])

    def resolve(self, path: str) -> tuple[Spec, ExtensionKey]:
        """Return the spec for `path` and the key used to find it.

        Unknown extensions resolve to the zero Spec; this never raises.
        """

        key = self.extension_for(path)
        return self.specs.get(key, ZERO_SPEC), key


def file_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]
