# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console output for install progress, warnings and failures."""

from __future__ import annotations

import sys
from enum import Enum
from functools import cache

from rich.console import Console
from rich.text import Text


class Level(Enum):
    """Message severities with their glyph and colour."""

    INFO = ("ℹ️ ", "cyan")
    OK = ("✅ ", "green")
    WARN = ("⚠️ ", "yellow")
    FAIL = ("❌ ", "red")

    @property
    def glyph(self) -> str:
        return self.value[0]

    @property
    def style(self) -> str:
        return self.value[1]


def stdout_is_terminal() -> bool:
    """Return whether stdout is an interactive terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        # Closed or replaced streams.
        return False


@cache
def console_for(*, color: bool, emoji: bool, terminal: bool) -> Console:
    """Return the shared Rich console for one colour/emoji/terminal combination."""

    use_color = color and terminal
    return Console(
        color_system="auto" if use_color else None,
        force_terminal=terminal,
        no_color=not use_color,
        emoji=emoji,
        soft_wrap=True,
        highlight=False,
    )


def emit(level: Level, msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Print ``msg`` at ``level``, prefixed by its glyph when emoji are enabled.

    Args:
        level: Message severity.
        msg: Text to print; Rich markup is not interpreted.
        use_emoji: Prefix the severity glyph.
        use_color: Force colour on or off; defaults to on for terminals.
    """

    terminal = stdout_is_terminal()
    color = terminal if use_color is None else use_color
    text = Text(f"{level.glyph if use_emoji else ''}{msg}")
    if color:
        text.stylize(level.style)
    console_for(color=color, emoji=use_emoji, terminal=terminal).print(text)


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(Level.INFO, msg, use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(Level.OK, msg, use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(Level.WARN, msg, use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(Level.FAIL, msg, use_emoji=use_emoji, use_color=use_color)


__all__ = ["Level", "console_for", "emit", "fail", "info", "ok", "stdout_is_terminal", "warn"]
