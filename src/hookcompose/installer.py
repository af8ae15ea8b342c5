# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Publish rendered configs into a working tree and register the runner."""

from __future__ import annotations

import os
import shlex
import shutil
import sys
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final

from .config import KNOWN_STAGES, GlobalSettings
from .environment import Environment, LocalToolStore
from .environment.store import swap_symlink, write_atomic
from .errors import InstallError
from .logging import info, ok, warn
from .serializer import RenderedConfig

SHIM_MARKER: Final[str] = "# hookcompose-managed"
DEFAULT_RUNNER_COMMAND: Final[str] = "pre-commit"
HOOK_TYPES: Final[frozenset[str]] = KNOWN_STAGES - {"manual"}


@dataclass(frozen=True, slots=True)
class ActivationHandle:
    """Outcome of an install: what is active and whether anything changed."""

    config_path: Path
    generation: Path
    environment: Environment
    hooks: tuple[Path, ...]
    backups: tuple[Path, ...]
    changed: bool


def find_git_dir(root: Path) -> Path | None:
    """Return the git directory for ``root``, following ``.git`` files of worktrees."""

    dot_git = root / ".git"
    if dot_git.is_dir():
        return dot_git
    if dot_git.is_file():
        content = dot_git.read_text(encoding="utf-8").strip()
        if content.startswith("gitdir:"):
            git_dir = (root / content.removeprefix("gitdir:").strip()).resolve()
            common = git_dir / "commondir"
            if common.is_file():
                return (git_dir / common.read_text(encoding="utf-8").strip()).resolve()
            return git_dir
    return None


def install_stages(document: Mapping[str, Any], settings: GlobalSettings) -> list[str]:
    """Return git hook types the runner should be registered for."""

    if settings.install_stages is not None:
        return list(settings.install_stages)
    stages = set(settings.default_stages)
    for repo in document.get("repos", []):
        for hook in repo.get("hooks", []):
            stages.update(hook.get("stages", []))
    return sorted(stages & HOOK_TYPES)


def _backup_path(path: Path) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return path.with_name(f"{path.name}.backup.{timestamp}")


class Installer:
    """Atomically publish a rendered config and register commit-time hooks."""

    def __init__(
        self,
        root: Path,
        store: LocalToolStore,
        settings: GlobalSettings,
        *,
        hooks_dir: Path | None = None,
        use_emoji: bool = True,
        quiet: bool = False,
    ) -> None:
        self.root = root.resolve()
        self.store = store
        self.settings = settings
        self._hooks_dir = hooks_dir
        self._use_emoji = use_emoji
        self._quiet = quiet

    @property
    def config_link(self) -> Path:
        """Return the fixed working-tree path of the installed config."""

        return self.root / self.settings.config_path

    def hooks_dir(self) -> Path | None:
        """Return the directory receiving runner shims, ``None`` outside git."""

        if self._hooks_dir is not None:
            return self._hooks_dir if self._hooks_dir.is_absolute() else self.root / self._hooks_dir
        git_dir = find_git_dir(self.root)
        return None if git_dir is None else git_dir / "hooks"

    def is_current(self, rendered: RenderedConfig, environment: Environment) -> bool:
        """Return ``True`` when installing ``rendered`` would change nothing.

        The config link must point at the generation for ``rendered`` and
        ``environment``, every runner shim must match, and the GC root must
        be registered.
        """

        try:
            if not self._linked(rendered, environment) or not self.store.has_root(self.config_link):
                return False
            hooks_dir = self.hooks_dir()
            if hooks_dir is None:
                return True
            wanted = install_stages(rendered.document, self.settings)
            for stage in wanted:
                shim = hooks_dir / stage
                if not shim.is_file() or shim.read_text(encoding="utf-8") != self.shim(stage, environment):
                    return False
            return not any(self._managed(hooks_dir / stage) for stage in HOOK_TYPES - set(wanted))
        except OSError:
            return False

    def _linked(self, rendered: RenderedConfig, environment: Environment) -> bool:
        link = self.config_link
        if not link.is_symlink():
            return False
        expected = self.store.generation_path(rendered.content, environment.to_json())
        try:
            return link.resolve() == expected and link.read_bytes() == rendered.content
        except OSError:
            return False

    def install(self, rendered: RenderedConfig, environment: Environment) -> ActivationHandle:
        """Publish ``rendered`` and register runner shims.

        The store generation and the shims are written before the config link
        is swapped, so a failure leaves the previously installed config active.
        Repeating an install with identical input performs no writes.

        Args:
            rendered: Config produced by the serializer.
            environment: Environment the config references.

        Returns:
            ActivationHandle: Description of the active installation.

        Raises:
            InstallError: If any filesystem step fails.
        """

        link = self.config_link
        backups: list[Path] = []
        try:
            current = self._linked(rendered, environment)
            generation = link.resolve() if current else self.store.publish_generation(rendered.content, environment.to_json())
            hooks, changed_hooks = self._register(
                install_stages(rendered.document, self.settings),
                environment,
                backups,
            )
            if not current:
                self._swap_link(link, generation, backups)
            changed_root = self.store.add_root(link)
        except OSError as exc:
            raise InstallError(f"failed to install {link}: {exc}") from exc

        changed = not current or changed_hooks or changed_root
        if not self._quiet:
            if changed:
                ok(f"Installed {self.settings.config_path} ({rendered.digest[:12]})", use_emoji=self._use_emoji)
            else:
                info(f"{self.settings.config_path} is up to date", use_emoji=self._use_emoji)
        return ActivationHandle(
            config_path=link,
            generation=generation,
            environment=environment,
            hooks=tuple(hooks),
            backups=tuple(backups),
            changed=changed,
        )

    def _swap_link(self, link: Path, target: Path, backups: list[Path]) -> None:
        link.parent.mkdir(parents=True, exist_ok=True)
        if not link.exists() or link.is_symlink():
            swap_symlink(link, target)
            return
        # The regular file stays in place until the new link replaces it.
        tmp = link.with_name(f".{link.name}.{uuid.uuid4().hex}.tmp")
        tmp.symlink_to(target)
        backup = _backup_path(link)
        try:
            shutil.copy2(link, backup)
            os.replace(tmp, link)
        except BaseException:
            tmp.unlink(missing_ok=True)
            backup.unlink(missing_ok=True)
            raise
        if not self._quiet:
            warn(f"Backed up existing {link.name} to {backup.name}", use_emoji=self._use_emoji)
        backups.append(backup)

    def shim(self, stage: str, environment: Environment) -> str:
        """Return the git hook script that hands ``stage`` to the runner."""

        runner = environment.runner_path
        runner_cmd = shlex.quote(str(runner)) if runner is not None else DEFAULT_RUNNER_COMMAND
        config = shlex.quote(self.settings.config_path.as_posix())
        return (
            "#!/usr/bin/env bash\n"
            f"{SHIM_MARKER}: regenerate with `hookcompose install`\n"
            'HERE="$(cd "$(dirname "$0")" && pwd)"\n'
            f'exec {runner_cmd} hook-impl --config={config} --hook-type={stage} --hook-dir "$HERE" -- "$@"\n'
        )

    def _register(
        self,
        stages: Iterable[str],
        environment: Environment,
        backups: list[Path],
    ) -> tuple[list[Path], bool]:
        hooks_dir = self.hooks_dir()
        if hooks_dir is None:
            if not self._quiet:
                warn(f"{self.root} is not a git repository; skipping hook registration", use_emoji=self._use_emoji)
            return [], False

        wanted = list(stages)
        changed = False
        installed: list[Path] = []
        for stage in wanted:
            destination = hooks_dir / stage
            script = self.shim(stage, environment)
            installed.append(destination)
            if destination.is_file() and destination.read_text(encoding="utf-8") == script:
                continue
            hooks_dir.mkdir(parents=True, exist_ok=True)
            if (destination.exists() or destination.is_symlink()) and not self._managed(destination):
                backup = _backup_path(destination)
                if not self._quiet:
                    warn(f"Backing up existing {stage} hook to {backup.name}", use_emoji=self._use_emoji)
                destination.rename(backup)
                backups.append(backup)
            write_atomic(destination, script.encode("utf-8"), staging=hooks_dir)
            destination.chmod(0o755)
            changed = True

        for stage in sorted(HOOK_TYPES - set(wanted)):
            stale = hooks_dir / stage
            if stale.is_file() and self._managed(stale):
                stale.unlink()
                changed = True
        return installed, changed

    @staticmethod
    def _managed(path: Path) -> bool:
        try:
            return SHIM_MARKER in path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            return False

    def activation_script(self, *, command: str | None = None) -> str:
        """Return shell text that activates hooks for this project.

        Evaluating it repeatedly is cheap: install runs only when ``status``
        reports the installation stale.

        Args:
            command: Command used to invoke hookcompose, defaults to the
                current interpreter running ``-m hookcompose``.

        Returns:
            str: POSIX shell script.
        """

        cli = command or f"{shlex.quote(sys.executable)} -m hookcompose"
        root = shlex.quote(str(self.root))
        config = shlex.quote(str(self.config_link))
        store = shlex.quote(str(self.store.root))
        return (
            f"# hookcompose activation for {self.root}\n"
            f"export HOOKCOMPOSE_STORE={store}\n"
            f"if ! {cli} status --root {root} --quiet; then\n"
            f"  {cli} install --root {root} --no-emoji || echo 'hookcompose: activation failed' >&2\n"
            "fi\n"
            f"export HOOKCOMPOSE_CONFIG={config}\n"
            'if [ -L "$HOOKCOMPOSE_CONFIG" ]; then\n'
            '  HOOKCOMPOSE_ENV="$(dirname "$(readlink "$HOOKCOMPOSE_CONFIG")")/environment.json"\n'
            "  export HOOKCOMPOSE_ENV\n"
            "fi\n"
        )


__all__ = [
    "ActivationHandle",
    "DEFAULT_RUNNER_COMMAND",
    "HOOK_TYPES",
    "Installer",
    "SHIM_MARKER",
    "find_git_dir",
    "install_stages",
]
