"""Rules-file loading tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from nyne.lib.config import FormatRule, NyneConfig, load_config, resolve_rules_path
from nyne.lib.domain import Command


def _install_rules(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "nynerules.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_config_from_fixture_toml(
    rules_fixture: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("NYNE_COMMAND_TIMEOUT_SECONDS", raising=False)

    loaded = load_config(rules_fixture)

    assert loaded == NyneConfig(
        formats=(
            FormatRule(
                extensions=(".go",),
                indent=8,
                tabexpand=False,
                commands=(Command(executable="gofmt", args=(), prints_to_stdout=True),),
            ),
            FormatRule(
                extensions=(".py", ".pyi"),
                indent=4,
                tabexpand=True,
                commands=(Command(executable="black", args=("-q", "$NAME")),),
            ),
            FormatRule(extensions=("Makefile", "go.mod"), indent=8),
        ),
        menu=("win", "Look dump"),
        command_timeout_seconds=12.5,
    )


def test_load_config_missing_file_returns_defaults(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.WARNING, logger="nyne.lib.config.settings")

    loaded = load_config(tmp_path / "absent.toml")

    assert loaded == NyneConfig()
    assert any("not found" in record.getMessage() for record in caplog.records)


def test_load_config_warns_on_unknown_keys(
    caplog: pytest.LogCaptureFixture,
    tmp_path: Path,
) -> None:
    path = _install_rules(
        tmp_path,
        (
            "colour = 'blue'\n"
            "\n"
            "[[format]]\n"
            "extensions = ['.c']\n"
            "indent = 8\n"
            "style = 'k&r'\n"
        ),
    )
    caplog.set_level(logging.WARNING, logger="nyne.lib.config.settings")

    loaded = load_config(path)

    assert loaded.formats[0].indent == 8
    messages = [record.getMessage() for record in caplog.records]
    assert any("format[0].style" in message for message in messages)
    assert any("colour" in message for message in messages)


@pytest.mark.parametrize(
    "content,match",
    [
        pytest.param("[[format]]\nextensions = ['.c']\nindent = 'eight'\n", "indent", id="indent"),
        pytest.param("[[format]]\nextensions = '.c'\n", "extensions", id="extensions"),
        pytest.param("[[format]]\nindent = 4\n", "extensions", id="missing-extensions"),
        pytest.param(
            "[[format]]\nextensions = ['.c']\ntabexpand = 1\n",
            "tabexpand",
            id="tabexpand",
        ),
        pytest.param(
            "[[format]]\nextensions = ['.c']\n[[format.commands]]\nargs = []\n",
            "exec",
            id="command-exec",
        ),
        pytest.param("[tag]\nmenu = [1, 2]\n", "tag.menu", id="menu"),
        pytest.param("[settings]\ncommand_timeout_seconds = 0\n", "command_timeout", id="timeout"),
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, content: str, match: str) -> None:
    path = _install_rules(tmp_path, content)

    with pytest.raises(ValueError, match=match):
        load_config(path)


def test_load_config_env_timeout_override(
    rules_fixture: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("NYNE_COMMAND_TIMEOUT_SECONDS", "3")

    loaded = load_config(rules_fixture)

    assert loaded.command_timeout_seconds == 3.0
    assert loaded.menu == ("win", "Look dump")


def test_load_config_rejects_bad_env_timeout(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("NYNE_COMMAND_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ValueError, match="NYNE_COMMAND_TIMEOUT_SECONDS"):
        load_config(tmp_path / "absent.toml")


def test_resolve_rules_path_precedence(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    explicit = tmp_path / "explicit.toml"
    env_rules = tmp_path / "env.toml"
    monkeypatch.setenv("NYNERULES", str(env_rules))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    assert resolve_rules_path(explicit) == explicit.resolve()
    assert resolve_rules_path() == env_rules.resolve()

    monkeypatch.delenv("NYNERULES")
    assert resolve_rules_path() == (tmp_path / "xdg" / "nyne" / "nynerules.toml").resolve()
