# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Options, output and error plumbing shared by every command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from ..config import default_store_root
from ..environment import LocalToolStore
from ..errors import HookComposeError
from ..logging import Level, emit


class CLIError(RuntimeError):
    """A command failure carrying the process exit status."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Routes command output through the console helpers with one emoji setting."""

    console: Console
    use_emoji: bool

    def info(self, message: str) -> None:
        emit(Level.INFO, message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        emit(Level.OK, message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        emit(Level.WARN, message, use_emoji=self.use_emoji)

    def fail(self, message: str) -> None:
        emit(Level.FAIL, message, use_emoji=self.use_emoji)

    def echo(self, message: str) -> None:
        """Write ``message`` to stdout verbatim, for output meant to be piped."""

        typer.echo(message, nl=False)

    def abort(self, exc: HookComposeError) -> typer.Exit:
        """Report ``exc`` and return the ``typer.Exit`` to raise for it."""

        error = CLIError(str(exc))
        self.fail(str(error))
        return typer.Exit(code=error.exit_code)


def build_cli_logger(*, emoji: bool) -> CLILogger:
    return CLILogger(console=Console(highlight=False), use_emoji=emoji)


def open_store(store: Path | None) -> LocalToolStore:
    """Open the tool store at ``store``, or the per-user default."""

    return LocalToolStore(store if store is not None else default_store_root())


ROOT_OPTION = Annotated[
    Path,
    typer.Option("--root", "-r", help="Project root.", file_okay=False),
]
STORE_OPTION = Annotated[
    Path | None,
    typer.Option("--store", help="Tool store directory (default: $HOOKCOMPOSE_STORE or the user cache)."),
]
EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji output."),
]


__all__ = [
    "CLIError",
    "CLILogger",
    "EMOJI_OPTION",
    "ROOT_OPTION",
    "STORE_OPTION",
    "build_cli_logger",
    "open_store",
]
