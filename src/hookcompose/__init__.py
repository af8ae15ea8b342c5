# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Declarative composition and installation of commit-time quality hooks."""

from __future__ import annotations

from .catalog import HookCatalog, HookDescriptor, ToolDependency, load_catalog
from .config import GlobalSettings, HookOverride, ProjectConfig, load_project_config
from .environment import Environment, LocalToolStore, compose
from .errors import (
    BuildError,
    ConfigError,
    DependencyBuildError,
    DependencyConflictError,
    HookComposeError,
    InstallError,
    InvalidPatternError,
    UnknownHookError,
)
from .installer import ActivationHandle, Installer
from .pipeline import activate, is_current
from .resolver import HookInstance, resolve
from .serializer import RenderedConfig, serialize

__version__ = "0.1.0"

__all__ = [
    "ActivationHandle",
    "BuildError",
    "ConfigError",
    "DependencyBuildError",
    "DependencyConflictError",
    "Environment",
    "GlobalSettings",
    "HookCatalog",
    "HookComposeError",
    "HookDescriptor",
    "HookInstance",
    "HookOverride",
    "Installer",
    "InstallError",
    "InvalidPatternError",
    "LocalToolStore",
    "ProjectConfig",
    "RenderedConfig",
    "ToolDependency",
    "UnknownHookError",
    "activate",
    "compose",
    "is_current",
    "load_catalog",
    "load_project_config",
    "resolve",
    "serialize",
]
