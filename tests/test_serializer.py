# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for rendering hook instances into the runner config."""

from __future__ import annotations

import json
from pathlib import Path

from hookcompose.catalog import HookCatalog
from hookcompose.config import GlobalSettings, HookOverride
from hookcompose.environment import Environment, ResolvedTool
from hookcompose.resolver import resolve
from hookcompose.serializer import bind_entry, global_exclude, serialize

EXPECTED_FIELDS = [
    "id",
    "name",
    "entry",
    "language",
    "files",
    "exclude",
    "types",
    "types_or",
    "exclude_types",
    "stages",
    "pass_filenames",
    "require_serial",
    "always_run",
    "fail_fast",
    "verbose",
]


def _environment(catalog: HookCatalog, **paths: str) -> Environment:
    return Environment.from_resolved(
        ResolvedTool(dependency=catalog.tools[tool_id].dependency(), path=Path(path))
        for tool_id, path in paths.items()
    )


def test_placeholder_is_bound_to_absolute_path(catalog: HookCatalog) -> None:
    (instance,) = resolve(catalog, {"py-lint": HookOverride(enabled=True)})
    environment = _environment(catalog, alpha="/store/tools/alpha/bin/alpha")
    assert bind_entry(instance, environment) == "/store/tools/alpha/bin/alpha check"


def test_bare_executable_is_bound_and_args_are_quoted(catalog: HookCatalog) -> None:
    override = HookOverride(enabled=True, args=["--flag", "two words"])
    (instance,) = resolve(catalog, {"shell": override})
    environment = _environment(catalog, gamma="/opt/tool dir/gamma")
    assert bind_entry(instance, environment) == "'/opt/tool dir/gamma' -x --flag 'two words'"


def test_unknown_placeholder_is_left_alone(catalog: HookCatalog) -> None:
    override = HookOverride(enabled=True, entry="${alpha} ${HOME}")
    (instance,) = resolve(catalog, {"py-lint": override})
    environment = _environment(catalog, alpha="/a")
    assert bind_entry(instance, environment) == "/a ${HOME}"


def test_document_layout(catalog: HookCatalog) -> None:
    settings = GlobalSettings(excludes=["^vendor/", "\\.min\\.js$"], fail_fast=True)
    instances = resolve(catalog, {"py-lint": HookOverride(enabled=True)}, settings=settings)
    rendered = serialize(instances, _environment(catalog, alpha="/a"), settings)

    document = json.loads(rendered.content)
    assert list(document) == ["default_stages", "exclude", "fail_fast", "repos"]
    assert document["exclude"] == "(^vendor/)|(\\.min\\.js$)"
    assert document["fail_fast"] is True
    (repo,) = document["repos"]
    assert repo["repo"] == "local"
    (hook,) = repo["hooks"]
    assert list(hook) == EXPECTED_FIELDS
    assert hook["entry"] == "/a check"
    assert hook["stages"] == ["pre-commit"]
    assert rendered.document == document


def test_rendering_is_byte_stable(catalog: HookCatalog) -> None:
    settings = GlobalSettings()
    overrides = {hook_id: HookOverride(enabled=True) for hook_id in ("shell", "py-lint", "py-format")}
    environment = _environment(catalog, alpha="/a", gamma="/g")
    first = serialize(resolve(catalog, overrides, settings=settings), environment, settings)
    second = serialize(resolve(catalog, dict(reversed(list(overrides.items()))), settings=settings), environment, settings)
    assert first.content == second.content
    assert first.digest == second.digest
    assert first.text.endswith("}\n")


def test_global_exclude_defaults_to_matching_nothing() -> None:
    assert global_exclude([]) == "^$"
    assert global_exclude(["^build/"]) == "(^build/)"
