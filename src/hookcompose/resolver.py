# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Merge project overrides over catalog descriptors into hook instances."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from .catalog import HookCatalog, HookDescriptor, ToolDependency
from .config import GlobalSettings, HookOverride
from .errors import ConfigError, InvalidPatternError, UnknownHookError

GLOBAL_SCOPE = "<global>"


@dataclass(frozen=True, slots=True)
class HookInstance:
    """Fully resolved, enabled hook ready for composition and serialization.

    ``entry`` still carries ``${tool}`` placeholders; the serializer binds them
    to the composed environment.
    """

    id: str
    name: str
    entry: str
    args: tuple[str, ...]
    language: str
    files: str
    exclude: str
    types: tuple[str, ...]
    types_or: tuple[str, ...]
    exclude_types: tuple[str, ...]
    stages: tuple[str, ...]
    pass_filenames: bool
    require_serial: bool
    always_run: bool
    fail_fast: bool
    verbose: bool
    tools: tuple[ToolDependency, ...]


def _check_pattern(hook_id: str, field: str, pattern: str) -> str:
    try:
        re.compile(pattern)
    except re.error as exc:
        raise InvalidPatternError(hook_id, field, pattern, str(exc)) from exc
    return pattern


def _pick(override: object | None, default: object) -> object:
    return default if override is None else override


def _merge(
    descriptor: HookDescriptor,
    override: HookOverride,
    *,
    tools: tuple[ToolDependency, ...],
    default_stages: tuple[str, ...],
) -> HookInstance:
    files = override.files if override.files is not None else descriptor.files
    exclude = override.exclude if override.exclude is not None else descriptor.exclude
    stages = override.stages if override.stages is not None else descriptor.stages
    return HookInstance(
        id=descriptor.id,
        name=override.name or descriptor.name,
        entry=override.entry if override.entry is not None else descriptor.entry,
        args=tuple(override.args or ()),
        language=override.language or descriptor.language,
        files=_check_pattern(descriptor.id, "files", files),
        exclude=_check_pattern(descriptor.id, "exclude", exclude),
        types=tuple(override.types) if override.types is not None else descriptor.types,
        types_or=tuple(override.types_or) if override.types_or is not None else descriptor.types_or,
        exclude_types=(
            tuple(override.exclude_types) if override.exclude_types is not None else descriptor.exclude_types
        ),
        stages=tuple(stages) or default_stages,
        pass_filenames=bool(_pick(override.pass_filenames, descriptor.pass_filenames)),
        require_serial=bool(_pick(override.require_serial, descriptor.require_serial)),
        always_run=bool(_pick(override.always_run, descriptor.always_run)),
        fail_fast=bool(override.fail_fast),
        verbose=bool(override.verbose),
        tools=tools,
    )


def resolve(
    catalog: HookCatalog,
    overrides: Mapping[str, HookOverride],
    *,
    settings: GlobalSettings | None = None,
) -> list[HookInstance]:
    """Produce the enabled hook instances for ``overrides``.

    Args:
        catalog: Descriptor catalog providing defaults.
        overrides: Project overrides keyed by hook identifier.
        settings: Global settings supplying default stages and tool pins.

    Returns:
        list[HookInstance]: Enabled instances ordered by hook identifier.

    Raises:
        UnknownHookError: If any override names a hook missing from the catalog.
        InvalidPatternError: If a file or exclude pattern fails to compile.
        ConfigError: If a tool version pin names an unknown tool.
    """

    settings = settings or GlobalSettings()
    unknown = [hook_id for hook_id in overrides if hook_id not in catalog]
    if unknown:
        raise UnknownHookError(unknown)

    unknown_pins = sorted(tool_id for tool_id in settings.tool_versions if tool_id not in catalog.tools)
    if unknown_pins:
        raise ConfigError(f"tool_versions references unknown tool(s): {', '.join(unknown_pins)}")

    for pattern in settings.excludes:
        _check_pattern(GLOBAL_SCOPE, "excludes", pattern)

    default_stages = tuple(settings.default_stages)
    instances: list[HookInstance] = []
    for hook_id in sorted(overrides):
        override = overrides[hook_id]
        if not override.enabled:
            continue
        descriptor = catalog.get(hook_id)
        tools = catalog.dependencies_for(descriptor, settings.tool_versions)
        instances.append(_merge(descriptor, override, tools=tools, default_stages=default_stages))
    return instances


__all__ = ["GLOBAL_SCOPE", "HookInstance", "resolve"]
