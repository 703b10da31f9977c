"""Subprocess execution with Result-based error handling.

Output is read line by line as the child produces it (stderr merged into
stdout), handed to an optional callback, and only the last ``keep_lines``
lines are retained.

Usage:
    result = run(["tauri", "build"], cwd=project_dir, env=build_env, on_line=echo)
    match result:
        case Ok(output):
            ...
        case Err(error):
            print(error.output)
"""

from __future__ import annotations

import subprocess
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from javelin.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

DEFAULT_KEEP_LINES = 200


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 when the process could not start.
        output: Last retained lines of combined stdout/stderr.
    """

    command: tuple[str, ...]
    returncode: int
    output: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    on_line: Callable[[str], None] | None = None,
    keep_lines: int = DEFAULT_KEEP_LINES,
) -> Result[str, ProcessError]:
    """Execute a command, streaming its output.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Complete environment for the child (inherits ours if None).
            Only the child sees it; os.environ is left alone.
        on_line: Called with each output line (newline stripped).
        keep_lines: How many trailing lines to keep for the result.
    """
    tail: deque[str] = deque(maxlen=max(1, keep_lines))
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, output=str(e)))

    with proc:
        assert proc.stdout is not None
        try:
            for raw in proc.stdout:
                line = raw.rstrip("\r\n")
                tail.append(line)
                if on_line is not None:
                    on_line(line)
        except BaseException:
            proc.kill()
            raise
        returncode = proc.wait()

    output = "\n".join(tail)
    if returncode != 0:
        return Err(ProcessError(command=tuple(cmd), returncode=returncode, output=output))
    return Ok(output)
