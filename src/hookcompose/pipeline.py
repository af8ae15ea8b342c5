# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end activation: resolve, compose, serialize and install."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .catalog import HookCatalog, ToolDependency, load_catalog
from .config import ProjectConfig, default_store_root, load_project_config
from .environment import Environment, LocalToolStore, ToolStore, compose, lookup_environment
from .errors import ConfigError
from .installer import ActivationHandle, Installer
from .resolver import HookInstance, resolve
from .serializer import RenderedConfig, serialize


@dataclass(frozen=True, slots=True)
class Composition:
    """Resolved inputs for one pipeline run."""

    root: Path
    config: ProjectConfig
    catalog: HookCatalog
    instances: list[HookInstance]
    runner: ToolDependency | None


def runner_dependency(config: ProjectConfig, catalog: HookCatalog) -> ToolDependency | None:
    """Return the tool dependency for the configured commit-time runner."""

    settings = config.settings
    if settings.runner is None:
        return None
    spec = catalog.tools.get(settings.runner)
    if spec is None:
        raise ConfigError(f"runner tool '{settings.runner}' is not in the catalog")
    return spec.dependency(settings.tool_versions.get(settings.runner))


def prepare(root: Path, *, catalog: HookCatalog | None = None, config: ProjectConfig | None = None) -> Composition:
    """Load project declarations and resolve them into hook instances.

    Args:
        root: Project root.
        catalog: Optional catalog; defaults to the builtin one plus the
            project's ``extra_catalogs``.
        config: Optional pre-loaded project configuration.

    Returns:
        Composition: Inputs for composition and serialization.
    """

    project_root = root.resolve()
    project = config or load_project_config(project_root)
    hooks = catalog or load_catalog(project.settings.extra_catalogs)
    instances = resolve(hooks, project.hooks, settings=project.settings)
    return Composition(
        root=project_root,
        config=project,
        catalog=hooks,
        instances=instances,
        runner=runner_dependency(project, hooks),
    )


def render(composition: Composition, store: ToolStore) -> tuple[RenderedConfig, Environment]:
    """Compose the environment for ``composition`` and serialize its config."""

    environment = compose(composition.instances, store, runner=composition.runner)
    return serialize(composition.instances, environment, composition.config.settings), environment


def activate(
    root: Path,
    *,
    store: LocalToolStore | None = None,
    hooks_dir: Path | None = None,
    catalog: HookCatalog | None = None,
    use_emoji: bool = True,
    quiet: bool = False,
) -> ActivationHandle:
    """Run the full pipeline for ``root`` and install the result.

    Every validation and build step completes before anything in the working
    tree is touched; any failure leaves the previous installation active.

    Args:
        root: Project root.
        store: Tool store; defaults to the user-level store.
        hooks_dir: Optional override for the git hooks directory.
        catalog: Optional pre-loaded catalog.
        use_emoji: Emoji preference for progress messages.
        quiet: Suppress progress messages.

    Returns:
        ActivationHandle: Description of the active installation.
    """

    composition = prepare(root, catalog=catalog)
    tool_store = store or LocalToolStore(default_store_root())
    rendered, environment = render(composition, tool_store)
    installer = Installer(
        composition.root,
        tool_store,
        composition.config.settings,
        hooks_dir=hooks_dir,
        use_emoji=use_emoji,
        quiet=quiet,
    )
    return installer.install(rendered, environment)


def is_current(
    root: Path,
    *,
    store: LocalToolStore | None = None,
    hooks_dir: Path | None = None,
    catalog: HookCatalog | None = None,
) -> bool:
    """Return whether activating ``root`` now would change nothing.

    Nothing is built: a missing tool artifact means the installation is stale,
    as do a different environment or a missing or edited runner shim.
    """

    composition = prepare(root, catalog=catalog)
    tool_store = store or LocalToolStore(default_store_root())
    environment = lookup_environment(composition.instances, tool_store, runner=composition.runner)
    if environment is None:
        return False
    rendered = serialize(composition.instances, environment, composition.config.settings)
    installer = Installer(composition.root, tool_store, composition.config.settings, hooks_dir=hooks_dir, quiet=True)
    return installer.is_current(rendered, environment)


__all__ = ["Composition", "activate", "is_current", "prepare", "render", "runner_dependency"]
