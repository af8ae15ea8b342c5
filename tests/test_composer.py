# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for dependency planning and environment composition."""

from __future__ import annotations

import pytest

from hookcompose.catalog import HookCatalog
from hookcompose.config import HookOverride
from hookcompose.environment import LocalToolStore, compose, lookup_environment, plan
from hookcompose.environment.composer import RUNNER_REQUESTER
from hookcompose.errors import DependencyBuildError, DependencyConflictError
from hookcompose.resolver import resolve

from fakes import FakeBuilder


def _enable(catalog: HookCatalog, *hook_ids: str):
    return resolve(catalog, {hook_id: HookOverride(enabled=True) for hook_id in hook_ids})


def test_shared_tool_is_planned_once(catalog: HookCatalog) -> None:
    dependencies = plan(_enable(catalog, "py-lint", "py-format"))
    assert [dependency.id for dependency in dependencies] == ["alpha"]


def test_plan_includes_runner_sorted_by_id(catalog: HookCatalog) -> None:
    runner = catalog.tools["runner"].dependency()
    dependencies = plan(_enable(catalog, "shell", "py-lint"), runner=runner)
    assert [dependency.id for dependency in dependencies] == ["alpha", "gamma", "runner"]


def test_conflicting_versions_name_both_requesters(catalog: HookCatalog) -> None:
    with pytest.raises(DependencyConflictError) as excinfo:
        plan(_enable(catalog, "beta-new", "beta-old"))
    assert excinfo.value.tool_id == "beta"
    assert excinfo.value.requesters == ("beta-new", "beta-old")
    assert "2.0.0" in str(excinfo.value)
    assert "1.0.0" in str(excinfo.value)


def test_runner_conflict_is_attributed_to_runner(catalog: HookCatalog) -> None:
    runner = catalog.tools["alpha"].dependency("0.1.0")
    with pytest.raises(DependencyConflictError) as excinfo:
        plan(_enable(catalog, "py-lint"), runner=runner)
    assert excinfo.value.requesters == ("py-lint", RUNNER_REQUESTER)


def test_conflict_is_detected_before_any_build(
    catalog: HookCatalog, store: LocalToolStore, builder: FakeBuilder
) -> None:
    with pytest.raises(DependencyConflictError):
        compose(_enable(catalog, "py-lint", "beta-new", "beta-old"), store)
    assert builder.built == []


def test_compose_returns_absolute_executables(catalog: HookCatalog, store: LocalToolStore) -> None:
    runner = catalog.tools["runner"].dependency()
    environment = compose(_enable(catalog, "py-lint", "beta-new"), store, runner=runner)
    assert list(environment.tools) == ["alpha", "beta", "runner"]
    beta = environment.path("beta")
    assert beta.is_absolute()
    assert beta.name == "beta-cli"
    assert beta.is_file()
    assert environment.runner_path == environment.path("runner")


def test_compose_builds_each_tool_once(catalog: HookCatalog, store: LocalToolStore, builder: FakeBuilder) -> None:
    instances = _enable(catalog, "py-lint", "py-format")
    first = compose(instances, store)
    second = compose(instances, store)
    assert builder.built == ["alpha"]
    assert first == second


def test_build_failure_aborts_composition(catalog: HookCatalog, store: LocalToolStore, builder: FakeBuilder) -> None:
    builder.fail = {"beta"}
    with pytest.raises(DependencyBuildError) as excinfo:
        compose(_enable(catalog, "py-lint", "beta-new", "shell"), store)
    assert excinfo.value.tool_id == "beta"
    assert builder.built == ["alpha", "beta"]
    assert "gamma" not in builder.built


def test_lookup_environment_requires_every_artifact(catalog: HookCatalog, store: LocalToolStore) -> None:
    instances = _enable(catalog, "py-lint", "shell")
    assert lookup_environment(instances, store) is None
    composed = compose(instances, store)
    assert lookup_environment(instances, store) == composed


def test_environment_digest_tracks_tool_paths(catalog: HookCatalog, store: LocalToolStore) -> None:
    first = compose(_enable(catalog, "py-lint"), store)
    second = compose(_enable(catalog, "beta-new"), store)
    assert first.digest == compose(_enable(catalog, "py-format"), store).digest
    assert first.digest != second.digest
    manifest = first.to_json()
    assert manifest["runner"] is None
    assert set(manifest["tools"]) == {"alpha"}
