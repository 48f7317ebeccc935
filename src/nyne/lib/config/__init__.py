"""Rules-file discovery and parsing helpers."""

from nyne.lib.config._paths import resolve_rules_path
from nyne.lib.config.settings import FormatRule, NyneConfig, load_config, parse_rules

__all__ = [
    "FormatRule",
    "NyneConfig",
    "load_config",
    "parse_rules",
    "resolve_rules_path",
]
