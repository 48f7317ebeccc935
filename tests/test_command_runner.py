"""Command execution tests against stand-in formatter scripts."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from nyne.lib.domain import Command
from nyne.lib.exec.errors import CommandTimeoutError, ProcessFailureError
from nyne.lib.exec.runner import run_command, snapshot_file, substitute_name

ScriptWriter = Callable[[str, str], Path]


def _python(script: Path, *args: str, prints_to_stdout: bool = True) -> Command:
    return Command(
        executable=sys.executable,
        args=(str(script), *args),
        prints_to_stdout=prints_to_stdout,
    )


def test_substitute_name_only_replaces_whole_placeholder() -> None:
    assert substitute_name(["-w", "$NAME"], "/tmp/nyne123.go") == ["-w", "/tmp/nyne123.go"]
    assert substitute_name(["--file=$NAME", "NAME", "$name", "$NAME"], "/t") == [
        "--file=$NAME",
        "NAME",
        "$name",
        "/t",
    ]


def test_stdout_command_result_is_captured_output(write_script: ScriptWriter) -> None:
    script = write_script(
        "upper.py",
        """
        import sys

        sys.stdout.write(sys.stdin.read().upper())
        """,
    )

    result = run_command(b"func f(){\n}\n", _python(script), ".go")

    assert result == b"FUNC F(){\n}\n"


def test_in_place_command_result_is_temp_file_content(write_script: ScriptWriter) -> None:
    script = write_script(
        "rewrite.py",
        """
        import sys
        from pathlib import Path

        path = Path(sys.argv[1])
        path.write_text(path.read_text().replace("\\t", "    "))
        print("rewrote", path)
        """,
    )

    result = run_command(
        b"\tx = 1\n",
        _python(script, "$NAME", prints_to_stdout=False),
        ".py",
    )

    assert result == b"    x = 1\n"


def test_name_substitution_passes_temp_path(write_script: ScriptWriter) -> None:
    script = write_script(
        "argv.py",
        """
        import json
        import sys

        print(json.dumps(sys.argv[1:]))
        """,
    )

    result = run_command(b"body", _python(script, "-w", "$NAME"), ".go")

    argv = json.loads(result)
    assert argv[0] == "-w"
    temp_path = Path(argv[1])
    assert temp_path.name.startswith("nyne")
    assert temp_path.name.endswith(".go")
    assert not temp_path.exists()


def test_embedded_placeholder_is_passed_verbatim(write_script: ScriptWriter) -> None:
    script = write_script(
        "argv_embedded.py",
        """
        import json
        import sys

        print(json.dumps(sys.argv[1:]))
        """,
    )

    result = run_command(b"x", _python(script, "--file=$NAME", "$NAME"), ".go")

    argv = json.loads(result)
    assert argv[0] == "--file=$NAME"
    assert Path(argv[1]).name.startswith("nyne")


def test_temp_file_holds_snapshot_and_is_removed(write_script: ScriptWriter) -> None:
    script = write_script(
        "show.py",
        """
        import sys
        from pathlib import Path

        path = Path(sys.argv[1])
        sys.stdout.write(str(path) + "\\n" + path.read_text())
        """,
    )

    result = run_command(b"snapshot\n", _python(script, "$NAME"), ".txt")

    path, content = result.decode().split("\n", 1)
    assert content == "snapshot\n"
    assert not Path(path).exists()


def test_temp_file_removed_on_failure(write_script: ScriptWriter, tmp_path: Path) -> None:
    record = tmp_path / "seen.txt"
    script = write_script(
        "fail.py",
        """
        import sys
        from pathlib import Path

        Path(sys.argv[2]).write_text(sys.argv[1])
        print("syntax error", file=sys.stderr)
        raise SystemExit(3)
        """,
    )

    with pytest.raises(ProcessFailureError) as excinfo:
        run_command(b"x", _python(script, "$NAME", str(record)), ".go")

    assert excinfo.value.exit_code == 3
    assert "syntax error" in excinfo.value.output
    assert not Path(record.read_text()).exists()


def test_missing_executable_is_process_failure() -> None:
    command = Command(executable="/nonexistent/nyne-formatter")

    with pytest.raises(ProcessFailureError) as excinfo:
        run_command(b"x", command, ".go")

    assert excinfo.value.exit_code is None
    assert "failed to launch" in str(excinfo.value)


def test_timeout_is_distinct_from_exit_failure(write_script: ScriptWriter) -> None:
    script = write_script(
        "hang.py",
        """
        import time

        time.sleep(30)
        """,
    )

    with pytest.raises(CommandTimeoutError) as excinfo:
        run_command(b"x", _python(script), ".go", timeout_seconds=0.5)

    assert excinfo.value.timeout_seconds == 0.5
    assert not isinstance(excinfo.value, ProcessFailureError)


def test_unchanged_output_returns_snapshot(write_script: ScriptWriter) -> None:
    script = write_script(
        "cat.py",
        """
        import sys

        sys.stdout.write(sys.stdin.read())
        """,
    )
    snapshot = b"already formatted\n"

    result = run_command(snapshot, _python(script), ".go")

    assert result is snapshot


def test_snapshot_file_cleanup_after_exception() -> None:
    with pytest.raises(RuntimeError):
        with snapshot_file(b"data", ".md") as path:
            assert path.read_bytes() == b"data"
            raise RuntimeError("boom")

    assert not path.exists()
