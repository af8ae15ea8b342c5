# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Compute and materialize the deduplicated tool environment for enabled hooks."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from ..catalog import ToolDependency
from ..errors import BuildError, DependencyBuildError, DependencyConflictError
from ..resolver import HookInstance
from .store import ToolStore

RUNNER_REQUESTER = "<runner>"


@dataclass(frozen=True, slots=True)
class ResolvedTool:
    """A tool dependency bound to its absolute executable path."""

    dependency: ToolDependency
    path: Path


@dataclass(frozen=True, slots=True)
class Environment:
    """Deduplicated tool id → resolved executable mapping, ordered by tool id."""

    tools: Mapping[str, ResolvedTool]
    runner: str | None = None

    @classmethod
    def from_resolved(cls, resolved: Iterable[ResolvedTool], *, runner: str | None = None) -> Environment:
        ordered = sorted(resolved, key=lambda item: item.dependency.id)
        return cls(tools=MappingProxyType({item.dependency.id: item for item in ordered}), runner=runner)

    def path(self, tool_id: str) -> Path:
        """Return the executable path for ``tool_id``.

        Raises:
            KeyError: If the tool is not part of the environment.
        """

        return self.tools[tool_id].path

    @property
    def runner_path(self) -> Path | None:
        """Return the commit-time runner executable when it was composed."""

        if self.runner is None or self.runner not in self.tools:
            return None
        return self.tools[self.runner].path

    def to_json(self) -> dict[str, object]:
        """Return the JSON manifest recorded alongside an installed config."""

        return {
            "runner": self.runner,
            "tools": {
                tool_id: {**item.dependency.to_json(), "path": str(item.path)} for tool_id, item in self.tools.items()
            },
        }

    @property
    def digest(self) -> str:
        encoded = json.dumps(self.to_json(), sort_keys=True, separators=(",", ":")).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()


def plan(
    instances: Sequence[HookInstance],
    *,
    runner: ToolDependency | None = None,
) -> list[ToolDependency]:
    """Return the distinct tool dependencies needed by ``instances``.

    Args:
        instances: Enabled hook instances.
        runner: Optional commit-time runner tool, composed like any hook tool.

    Returns:
        list[ToolDependency]: One dependency per tool id, ordered by tool id.

    Raises:
        DependencyConflictError: If two requesters need the same tool at
            different fingerprints.
    """

    chosen: dict[str, tuple[ToolDependency, str]] = {}
    requests: list[tuple[str, ToolDependency]] = [
        (instance.id, dependency) for instance in instances for dependency in instance.tools
    ]
    if runner is not None:
        requests.append((RUNNER_REQUESTER, runner))

    for requester, dependency in requests:
        previous = chosen.get(dependency.id)
        if previous is None:
            chosen[dependency.id] = (dependency, requester)
            continue
        existing, existing_requester = previous
        if existing.fingerprint != dependency.fingerprint:
            raise DependencyConflictError(
                dependency.id,
                (existing_requester, existing.version),
                (requester, dependency.version),
            )
    return [chosen[tool_id][0] for tool_id in sorted(chosen)]


def compose(
    instances: Sequence[HookInstance],
    store: ToolStore,
    *,
    runner: ToolDependency | None = None,
) -> Environment:
    """Materialize every tool needed by ``instances`` and return the environment.

    All dependencies are planned and conflict-checked before the store is
    called; a failure for any tool aborts the whole composition.

    Args:
        instances: Enabled hook instances.
        store: Store that materializes tools by fingerprint.
        runner: Optional commit-time runner tool.

    Returns:
        Environment: Resolved absolute executable paths.

    Raises:
        DependencyConflictError: See :func:`plan`.
        DependencyBuildError: If the store fails to materialize any tool.
    """

    resolved: list[ResolvedTool] = []
    for dependency in plan(instances, runner=runner):
        try:
            path = store.materialize(dependency)
        except BuildError as exc:
            raise DependencyBuildError(dependency.id, str(exc)) from exc
        resolved.append(ResolvedTool(dependency=dependency, path=Path(path).absolute()))
    return Environment.from_resolved(resolved, runner=runner.id if runner else None)


def lookup_environment(
    instances: Sequence[HookInstance],
    store: ToolStore,
    *,
    runner: ToolDependency | None = None,
) -> Environment | None:
    """Return the environment from already-built artifacts, or ``None`` if any is missing."""

    resolved: list[ResolvedTool] = []
    for dependency in plan(instances, runner=runner):
        path = store.lookup(dependency)
        if path is None:
            return None
        resolved.append(ResolvedTool(dependency=dependency, path=Path(path).absolute()))
    return Environment.from_resolved(resolved, runner=runner.id if runner else None)


__all__ = ["Environment", "RUNNER_REQUESTER", "ResolvedTool", "compose", "lookup_environment", "plan"]
