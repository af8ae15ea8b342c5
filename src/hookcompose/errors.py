# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the composition pipeline."""

from __future__ import annotations

from collections.abc import Sequence


class HookComposeError(Exception):
    """Base class for every error surfaced by hookcompose."""


class ConfigError(HookComposeError):
    """Raised when configuration input is invalid."""


class CatalogIntegrityError(HookComposeError):
    """Raised when catalog metadata violates semantic invariants."""


class ValidationError(HookComposeError):
    """Raised when hook declarations fail validation."""


class UnknownHookError(ValidationError):
    """Raised when an override references a hook missing from the catalog."""

    def __init__(self, hook_ids: Sequence[str]) -> None:
        """Create the error for the unknown ``hook_ids``.

        Args:
            hook_ids: Identifiers that have no matching descriptor.
        """

        self.hook_ids = tuple(sorted(hook_ids))
        joined = ", ".join(self.hook_ids)
        super().__init__(f"unknown hook identifier(s): {joined}")


class InvalidPatternError(ValidationError):
    """Raised when a file or exclude pattern is not a valid regular expression."""

    def __init__(self, hook_id: str, field: str, pattern: str, reason: str) -> None:
        """Create the error naming the offending hook and field.

        Args:
            hook_id: Identifier of the hook declaring the pattern.
            field: Override field holding the pattern (``files`` or ``exclude``).
            pattern: Raw pattern text that failed to compile.
            reason: Message reported by the regular expression compiler.
        """

        self.hook_id = hook_id
        self.field = field
        self.pattern = pattern
        super().__init__(f"{hook_id}: invalid '{field}' pattern {pattern!r}: {reason}")


class DependencyConflictError(HookComposeError):
    """Raised when enabled hooks need incompatible versions of the same tool."""

    def __init__(
        self,
        tool_id: str,
        first: tuple[str, str | None],
        second: tuple[str, str | None],
    ) -> None:
        """Create the conflict error listing both requesters.

        Args:
            tool_id: Tool identifier requested at two fingerprints.
            first: ``(hook id, version)`` of the first requester.
            second: ``(hook id, version)`` of the second requester.
        """

        self.tool_id = tool_id
        self.requesters = (first[0], second[0])
        super().__init__(
            f"tool '{tool_id}' requested at incompatible versions: "
            f"{first[0]} wants {first[1] or 'unpinned'}, {second[0]} wants {second[1] or 'unpinned'}"
        )


class DependencyBuildError(HookComposeError):
    """Raised when the tool store fails to materialize a dependency."""

    def __init__(self, tool_id: str, reason: str) -> None:
        """Create the error identifying the failing tool.

        Args:
            tool_id: Identifier of the tool that failed to build.
            reason: Message reported by the store.
        """

        self.tool_id = tool_id
        super().__init__(f"failed to materialize tool '{tool_id}': {reason}")


class BuildError(HookComposeError):
    """Raised by a tool store or builder when an artifact cannot be produced."""


class InstallError(HookComposeError):
    """Raised when publishing the rendered config fails."""


__all__ = [
    "BuildError",
    "CatalogIntegrityError",
    "ConfigError",
    "DependencyBuildError",
    "DependencyConflictError",
    "HookComposeError",
    "InstallError",
    "InvalidPatternError",
    "UnknownHookError",
    "ValidationError",
]
