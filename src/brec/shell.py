"""Shell command execution for recipe payloads.

Recipe files use sh() to run commands without blocking other recipes:

    build = recipe("Build the project", lambda: sh("make all"), [clean])
"""

from __future__ import annotations

import asyncio
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path

__all__ = [
    "ShellError",
    "TaskOutputTypes",
    "get_default_output",
    "set_default_output",
    "sh",
]


class TaskOutputTypes(Enum):
    """Which subprocess streams are passed through to the terminal."""

    ALL = "all"
    NONE = "none"
    OUT = "out"
    ERR = "err"


class ShellError(Exception):
    """Raised when a shell command exits with a non-zero status."""

    def __init__(self, cmd: str, returncode: int) -> None:
        super().__init__(f"Command '{cmd}' failed with exit code {returncode}")
        self.cmd = cmd
        self.returncode = returncode


_default_output = TaskOutputTypes.ALL


def set_default_output(output: TaskOutputTypes) -> None:
    """Set the output mode used by sh() calls that do not pass one."""
    global _default_output
    _default_output = output


def get_default_output() -> TaskOutputTypes:
    return _default_output


def _stream_targets(output: TaskOutputTypes) -> tuple[int | None, int | None]:
    """Map an output mode to (stdout, stderr) arguments for the subprocess."""
    match output:
        case TaskOutputTypes.ALL:
            return None, None
        case TaskOutputTypes.NONE:
            return subprocess.DEVNULL, subprocess.DEVNULL
        case TaskOutputTypes.OUT:
            return None, subprocess.DEVNULL
        case TaskOutputTypes.ERR:
            return subprocess.DEVNULL, None
        case _:
            raise ValueError(f"Invalid TaskOutputTypes: {output}")


async def sh(
    cmd: str | Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    output: TaskOutputTypes | None = None,
) -> int:
    """Run a command through the system shell.

    Args:
        cmd: Command line, or a sequence of arguments to be quoted and joined
        cwd: Working directory (defaults to the current directory)
        env: Complete environment for the command (defaults to inherited)
        check: Raise ShellError if the command exits non-zero
        output: Which streams to show (defaults to get_default_output())

    Returns:
        The command's exit code

    Raises:
        ShellError: If check is set and the command fails
    """
    if not isinstance(cmd, str):
        cmd = shlex.join(cmd)

    stdout, stderr = _stream_targets(output if output is not None else _default_output)

    process = await asyncio.create_subprocess_shell(
        cmd,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=stdout,
        stderr=stderr,
    )
    returncode = await process.wait()

    if check and returncode != 0:
        raise ShellError(cmd, returncode)
    return returncode
