# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run installer and version-probe commands without a shell."""

from __future__ import annotations

import shutil

# Bandit: builders run fixed installer commands as argument lists without a shell.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Final

TIMEOUT_STATUS: Final[int] = 124
STDERR_TAIL_LINES: Final[int] = 20


class CommandError(RuntimeError):
    """Raised when a command exits non-zero or times out."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str | None) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr or ""
        tail = "\n".join(self.stderr.strip().splitlines()[-STDERR_TAIL_LINES:]) or "<no stderr>"
        super().__init__(f"'{Path(command[0]).name}' exited with status {returncode}: {tail}")


def resolve_executable(name: str, *, env: Mapping[str, str] | None = None) -> str:
    """Return an absolute path for ``name``, searching ``env['PATH']`` when given.

    Raises:
        FileNotFoundError: If ``name`` is relative and not found.
    """

    if Path(name).is_absolute():
        return name
    search_path = env.get("PATH") if env is not None else None
    found = shutil.which(name, path=search_path)
    if found is None:
        raise FileNotFoundError(f"executable '{name}' was not found on PATH")
    return found


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run ``args`` with captured text output and fail on a non-zero exit.

    Args:
        args: Command and arguments; the executable is resolved on ``PATH``.
        cwd: Optional working directory.
        env: Optional full environment for the child process.
        timeout: Optional timeout in seconds.

    Returns:
        subprocess.CompletedProcess[str]: The finished process.

    Raises:
        ValueError: If ``args`` is empty.
        FileNotFoundError: If the executable cannot be resolved.
        CommandError: On a non-zero exit status or a timeout.
    """

    if not args:
        raise ValueError("command requires at least one argument")
    command = [resolve_executable(args[0], env=env), *args[1:]]
    try:
        completed = subprocess.run(  # nosec B603
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandError(command, TIMEOUT_STATUS, f"timed out after {timeout}s") from exc
    if completed.returncode != 0:
        raise CommandError(command, completed.returncode, completed.stderr)
    return completed


__all__ = ["CommandError", "TIMEOUT_STATUS", "resolve_executable", "run_command"]
