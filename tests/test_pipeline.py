# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""End-to-end tests for project activation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from hookcompose.environment import LocalToolStore
from hookcompose.errors import CatalogIntegrityError, DependencyBuildError, UnknownHookError
from hookcompose.pipeline import activate, is_current, prepare

from fakes import FakeBuilder


def test_prepare_resolves_builtin_hooks(project: Path) -> None:
    composition = prepare(project)
    assert [instance.id for instance in composition.instances] == ["ruff", "ruff-format", "shellcheck"]
    assert composition.runner is not None
    assert composition.runner.id == "pre-commit"
    assert composition.root == project.resolve()


def test_activate_installs_a_self_contained_config(
    project: Path, store: LocalToolStore, builder: FakeBuilder
) -> None:
    handle = activate(project, store=store, quiet=True)

    document = json.loads((project / ".pre-commit-config.yaml").read_bytes())
    assert document["exclude"] == "(^vendor/)"
    hooks = {hook["id"]: hook for hook in document["repos"][0]["hooks"]}
    assert list(hooks) == ["ruff", "ruff-format", "shellcheck"]
    assert hooks["ruff"]["entry"].startswith(str(store.tools_dir))
    assert hooks["ruff"]["entry"].endswith(" check --fix --force-exclude")
    assert hooks["shellcheck"]["entry"].endswith("--severity warning")
    assert sorted(builder.built) == ["pre-commit", "ruff", "shellcheck"]
    assert handle.environment.runner_path is not None
    assert (project / ".git" / "hooks" / "pre-commit").is_file()


def test_activation_is_idempotent(project: Path, store: LocalToolStore, builder: FakeBuilder) -> None:
    first = activate(project, store=store, quiet=True)
    second = activate(project, store=store, quiet=True)
    assert first.changed is True
    assert second.changed is False
    assert second.generation == first.generation
    assert len(builder.built) == 3


def test_failed_activation_keeps_previous_config(
    project: Path, store: LocalToolStore, builder: FakeBuilder
) -> None:
    activate(project, store=store, quiet=True)
    installed = (project / ".pre-commit-config.yaml").read_bytes()

    config = project / ".hookcompose.toml"
    config.write_text(config.read_text(encoding="utf-8") + "\n[hooks.mypy]\nenabled = true\n", encoding="utf-8")
    builder.fail = {"mypy"}
    with pytest.raises(DependencyBuildError):
        activate(project, store=store, quiet=True)
    assert (project / ".pre-commit-config.yaml").read_bytes() == installed

    config.write_text(config.read_text(encoding="utf-8") + "\n[hooks.nope]\nenabled = true\n", encoding="utf-8")
    with pytest.raises(UnknownHookError):
        activate(project, store=store, quiet=True)
    assert (project / ".pre-commit-config.yaml").read_bytes() == installed


def test_is_current_tracks_declaration_changes(project: Path, store: LocalToolStore) -> None:
    assert is_current(project, store=store) is False
    activate(project, store=store, quiet=True)
    assert is_current(project, store=store) is True

    config = project / ".hookcompose.toml"
    config.write_text(config.read_text(encoding="utf-8").replace("^vendor/", "^third_party/"), encoding="utf-8")
    assert is_current(project, store=store) is False


def test_is_current_requires_registered_runner_shims(project: Path, store: LocalToolStore) -> None:
    activate(project, store=store, quiet=True)
    shim = project / ".git" / "hooks" / "pre-commit"

    shim.unlink()
    assert is_current(project, store=store) is False

    assert activate(project, store=store, quiet=True).changed is True
    assert is_current(project, store=store) is True

    shim.write_text(shim.read_text(encoding="utf-8") + "echo edited\n", encoding="utf-8")
    assert is_current(project, store=store) is False


def test_repinned_runner_survives_garbage_collection(project: Path, store: LocalToolStore) -> None:
    first = activate(project, store=store, quiet=True)

    config = project / ".hookcompose.toml"
    config.write_text('tool_versions = { pre-commit = "9.9.9" }\n' + config.read_text(encoding="utf-8"), encoding="utf-8")
    assert is_current(project, store=store) is False
    second = activate(project, store=store, quiet=True)
    assert second.generation != first.generation
    assert is_current(project, store=store) is True

    store.collect_garbage()

    runner = second.environment.runner_path
    assert runner is not None
    assert runner != first.environment.runner_path
    assert runner.is_file()
    assert str(runner) in (project / ".git" / "hooks" / "pre-commit").read_text(encoding="utf-8")
    manifest = json.loads((second.generation.parent / "environment.json").read_text(encoding="utf-8"))
    assert manifest["runner"] == "pre-commit"
    assert manifest["tools"]["pre-commit"]["version"] == "9.9.9"


def test_missing_extra_catalog_is_an_integrity_error(project: Path) -> None:
    config = project / ".hookcompose.toml"
    config.write_text('extra_catalogs = ["nope.json"]\n' + config.read_text(encoding="utf-8"), encoding="utf-8")
    with pytest.raises(CatalogIntegrityError, match="nope.json"):
        prepare(project)
