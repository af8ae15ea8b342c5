# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Probe system tools for their version and check minimum requirements."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Final

from packaging.version import InvalidVersion, Version

from ..process import CommandError, run_command

VERSION_TOKEN: Final[re.Pattern[str]] = re.compile(r"\bv?(\d+(?:\.\d+)+)")


def parse_version(output: str | None) -> Version | None:
    """Return the first PEP 440 version found in ``output``.

    Tools print banners before the number (``ShellCheck ... version: 0.10.0``)
    or a ``v`` prefix (``v3.8.0``); both are accepted.
    """

    if not output:
        return None
    for token in VERSION_TOKEN.findall(output):
        try:
            return Version(token)
        except InvalidVersion:
            continue
    return None


class VersionResolver:
    """Run ``--version`` probes and compare the result against a minimum."""

    def capture(self, command: Sequence[str], *, env: Mapping[str, str] | None = None) -> str | None:
        """Return the version reported by ``command``, ``None`` if it cannot be determined."""

        try:
            completed = run_command(command, env=env)
        except (OSError, ValueError, CommandError):
            return None
        return self.normalize(completed.stdout or completed.stderr)

    def normalize(self, raw: str | None) -> str | None:
        version = parse_version(raw)
        return None if version is None else str(version)

    def is_compatible(self, actual: str | None, expected: str | None) -> bool:
        """Return whether ``actual`` is at least ``expected``; no expectation always passes."""

        if expected is None:
            return True
        found = parse_version(actual)
        wanted = parse_version(expected)
        if found is None or wanted is None:
            return False
        return found >= wanted


__all__ = ["VERSION_TOKEN", "VersionResolver", "parse_version"]
