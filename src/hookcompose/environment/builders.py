# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runtime-specific builders that install a tool into a store prefix."""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from ..catalog import ToolSpec
from ..errors import BuildError
from ..process import CommandError, run_command
from .versioning import VersionResolver


class ToolBuilder(ABC):
    """Install a single tool into an empty prefix directory."""

    runtime: str = ""

    def build(self, spec: ToolSpec, prefix: Path) -> Path:
        """Install ``spec`` below ``prefix`` and return its executable.

        Args:
            spec: Tool specification to install.
            prefix: Empty staging directory owned by the store.

        Returns:
            Path: Executable located inside ``prefix``.

        Raises:
            BuildError: If installation fails or the executable is missing.
        """

        try:
            executable = self._install(spec, prefix)
        except (OSError, CommandError) as exc:
            raise BuildError(f"{self.runtime} build of '{spec.id}' failed: {exc}") from exc
        if not executable.exists():
            raise BuildError(f"{spec.id}: executable '{spec.executable}' missing after install")
        return executable

    @abstractmethod
    def _install(self, spec: ToolSpec, prefix: Path) -> Path:
        """Perform the runtime-specific installation."""

    @staticmethod
    def _env(extra: Mapping[str, str]) -> dict[str, str]:
        env = os.environ.copy()
        env.update(extra)
        return env


class PythonToolBuilder(ToolBuilder):
    """Install Python tools into a relocatable uv virtualenv."""

    runtime = "python"

    def __init__(self, cache_dir: Path | None = None) -> None:
        self._cache_dir = cache_dir

    def _install(self, spec: ToolSpec, prefix: Path) -> Path:
        venv = prefix / "venv"
        env = self._env({"UV_CACHE_DIR": str(self._cache_dir)} if self._cache_dir else {})
        requirement = f"{spec.package}=={spec.version}" if spec.version else spec.package
        run_command(["uv", "venv", "--quiet", "--relocatable", str(venv)], env=env)
        run_command(
            ["uv", "pip", "install", "--quiet", "--python", str(venv / "bin" / "python"), requirement],
            env=env,
        )
        return venv / "bin" / spec.executable


class NodeToolBuilder(ToolBuilder):
    """Install npm packages into a dedicated prefix."""

    runtime = "node"

    def __init__(self, cache_dir: Path | None = None) -> None:
        self._cache_dir = cache_dir

    def _install(self, spec: ToolSpec, prefix: Path) -> Path:
        env = self._env({"npm_config_cache": str(self._cache_dir)} if self._cache_dir else {})
        requirement = f"{spec.package}@{spec.version}" if spec.version else spec.package
        run_command(
            ["npm", "install", "--prefix", str(prefix), "--no-save", "--no-audit", "--no-fund", requirement],
            env=env,
        )
        return prefix / "node_modules" / ".bin" / spec.executable


class SystemToolBuilder(ToolBuilder):
    """Link an executable already present on ``PATH`` into the store.

    A pinned version is treated as a minimum and checked with ``--version``.
    """

    runtime = "system"

    def __init__(self, versions: VersionResolver | None = None) -> None:
        self._versions = versions or VersionResolver()

    def _install(self, spec: ToolSpec, prefix: Path) -> Path:
        found = shutil.which(spec.executable)
        if found is None:
            raise BuildError(f"{spec.id}: '{spec.executable}' was not found on PATH")
        resolved = Path(found).resolve()
        if spec.version is not None:
            actual = self._versions.capture([str(resolved), "--version"])
            if not self._versions.is_compatible(actual, spec.version):
                raise BuildError(f"{spec.id}: system version {actual or 'unknown'} does not satisfy {spec.version}")
        bin_dir = prefix / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        link = bin_dir / spec.executable
        link.symlink_to(resolved)
        return link


def default_builders(cache_dir: Path | None = None) -> dict[str, ToolBuilder]:
    """Return the builder for every supported runtime."""

    return {
        "python": PythonToolBuilder(cache_dir / "uv" if cache_dir else None),
        "node": NodeToolBuilder(cache_dir / "npm" if cache_dir else None),
        "system": SystemToolBuilder(),
    }


__all__ = [
    "NodeToolBuilder",
    "PythonToolBuilder",
    "SystemToolBuilder",
    "ToolBuilder",
    "default_builders",
]
