# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and loaders for project hook declarations."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigError

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
PROJECT_CONFIG_FILENAME: Final[str] = ".hookcompose.toml"
CONFIG_KEY: Final[str] = "hookcompose"
STORE_ENV: Final[str] = "HOOKCOMPOSE_STORE"

KNOWN_STAGES: Final[frozenset[str]] = frozenset(
    {
        "commit-msg",
        "manual",
        "post-checkout",
        "post-commit",
        "post-merge",
        "post-rewrite",
        "pre-commit",
        "pre-merge-commit",
        "pre-push",
        "pre-rebase",
        "prepare-commit-msg",
    }
)
LEGACY_STAGES: Final[Mapping[str, str]] = {
    "commit": "pre-commit",
    "merge-commit": "pre-merge-commit",
    "push": "pre-push",
}


def normalise_stages(values: list[str]) -> list[str]:
    """Return ``values`` mapped to modern stage names, deduplicated and sorted.

    Raises:
        ValueError: If a stage is not understood by the commit-time runner.
    """

    stages: set[str] = set()
    for value in values:
        stage = LEGACY_STAGES.get(value, value)
        if stage not in KNOWN_STAGES:
            raise ValueError(f"unknown stage '{value}'")
        stages.add(stage)
    return sorted(stages)


class HookOverride(BaseModel):
    """User-supplied partial customisation of a catalog hook."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = False
    name: str | None = None
    entry: str | None = None
    language: str | None = None
    files: str | None = None
    exclude: str | None = None
    types: list[str] | None = None
    types_or: list[str] | None = None
    exclude_types: list[str] | None = None
    stages: list[str] | None = None
    args: list[str] | None = None
    pass_filenames: bool | None = None
    require_serial: bool | None = None
    always_run: bool | None = None
    fail_fast: bool | None = None
    verbose: bool | None = None

    @field_validator("stages")
    @classmethod
    def _check_stages(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else normalise_stages(value)


class GlobalSettings(BaseModel):
    """Project-wide settings copied into the rendered config or used by the installer."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    default_stages: list[str] = Field(default_factory=lambda: ["pre-commit"])
    excludes: list[str] = Field(default_factory=list)
    fail_fast: bool = False
    install_stages: list[str] | None = None
    config_path: Path = Path(".pre-commit-config.yaml")
    runner: str | None = "pre-commit"
    tool_versions: dict[str, str] = Field(default_factory=dict)
    extra_catalogs: list[Path] = Field(default_factory=list)

    @field_validator("default_stages")
    @classmethod
    def _check_default_stages(cls, value: list[str]) -> list[str]:
        return normalise_stages(value)

    @field_validator("install_stages")
    @classmethod
    def _check_install_stages(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        stages = normalise_stages(value)
        if "manual" in stages:
            raise ValueError("'manual' is not a git hook type and cannot be installed")
        return stages

    @field_validator("config_path")
    @classmethod
    def _check_config_path(cls, value: Path) -> Path:
        if value.is_absolute() or ".." in value.parts:
            raise ValueError("config_path must be relative to the project root")
        return value


class ProjectConfig(BaseModel):
    """Hook declarations plus global settings for a single project."""

    model_config = ConfigDict(extra="forbid")

    settings: GlobalSettings = Field(default_factory=GlobalSettings)
    hooks: dict[str, HookOverride] = Field(default_factory=dict)
    source: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: Path | None = None) -> ProjectConfig:
        """Build a :class:`ProjectConfig` from a raw TOML table.

        Args:
            data: Table holding global settings and a ``hooks`` sub-table.
            source: File the table was read from, used in error messages.

        Returns:
            ProjectConfig: Validated project configuration.

        Raises:
            ConfigError: If the table fails validation.
        """

        payload = dict(data)
        hooks = payload.pop("hooks", {})
        origin = str(source) if source is not None else "<memory>"
        try:
            return cls(settings=GlobalSettings(**payload), hooks=hooks, source=source)
        except PydanticValidationError as exc:
            raise ConfigError(f"{origin}: {exc}") from exc


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as stream:
            return tomllib.load(stream)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def load_project_config(root: Path) -> ProjectConfig:
    """Load hook declarations for the project at ``root``.

    ``.hookcompose.toml`` takes precedence over ``[tool.hookcompose]`` in
    ``pyproject.toml``. A project without either declares no hooks.

    Args:
        root: Project root directory.

    Returns:
        ProjectConfig: Validated configuration with catalog paths made absolute.
    """

    project_root = root.resolve()
    dedicated = project_root / PROJECT_CONFIG_FILENAME
    pyproject = project_root / PYPROJECT_FILENAME
    if dedicated.is_file():
        config = ProjectConfig.from_mapping(_read_toml(dedicated), source=dedicated)
    elif pyproject.is_file():
        table = _read_toml(pyproject).get("tool", {}).get(CONFIG_KEY, {})
        config = ProjectConfig.from_mapping(table, source=pyproject)
    else:
        config = ProjectConfig()

    settings = config.settings
    settings.extra_catalogs = [path if path.is_absolute() else project_root / path for path in settings.extra_catalogs]
    return config


def default_store_root() -> Path:
    """Return the tool store directory honouring ``HOOKCOMPOSE_STORE`` and XDG."""

    override = os.environ.get(STORE_ENV)
    if override:
        return Path(override).expanduser()
    cache_home = os.environ.get("XDG_CACHE_HOME")
    base = Path(cache_home).expanduser() if cache_home else Path.home() / ".cache"
    return base / "hookcompose" / "store"


__all__ = [
    "GlobalSettings",
    "HookOverride",
    "KNOWN_STAGES",
    "LEGACY_STAGES",
    "ProjectConfig",
    "default_store_root",
    "load_project_config",
    "normalise_stages",
]
