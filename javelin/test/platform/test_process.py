"""Tests for javelin.platform.process module."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from javelin.core.result import Err, Ok
from javelin.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("tauri", "build"), returncode=1, output="")
        assert str(error) == "tauri build failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("cmd", "/C", "npm", "run", "tauri", "build"), returncode=2, output=""
        )
        assert str(error) == "cmd /C npm ... failed (exit 2)"


class TestRun:
    def test_success_returns_output(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert result == Ok("hello")

    def test_lines_are_streamed_in_order(self, tmp_path: Path) -> None:
        seen: list[str] = []
        script = "import sys; print('one'); sys.stderr.write('two\\n'); sys.stderr.flush(); print('three')"

        result = run(
            [sys.executable, "-u", "-c", script], cwd=tmp_path, on_line=seen.append
        )

        assert isinstance(result, Ok)
        assert seen == ["one", "two", "three"]

    def test_failure_keeps_output_tail(self, tmp_path: Path) -> None:
        script = "import sys\nfor i in range(50): print(f'line {i}')\nsys.exit(42)"

        result = run([sys.executable, "-c", script], cwd=tmp_path, keep_lines=5)

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert result.error.output.splitlines() == [f"line {i}" for i in range(45, 50)]

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_env_reaches_child_only(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("JAVELIN_PROBE", raising=False)
        env = dict(os.environ)
        env["JAVELIN_PROBE"] = "secret-value"

        result = run(
            [sys.executable, "-c", "import os; print(os.environ['JAVELIN_PROBE'])"],
            cwd=tmp_path,
            env=env,
        )

        assert result == Ok("secret-value")
        assert "JAVELIN_PROBE" not in os.environ
