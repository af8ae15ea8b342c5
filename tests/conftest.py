# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from fakes import FakeBuilder

from hookcompose.catalog import CatalogLoader, HookCatalog
from hookcompose.environment import LocalToolStore

TEST_CATALOG = {
    "schema_version": "1",
    "tools": {
        "alpha": {"runtime": "python", "version": "1.0.0"},
        "beta": {"runtime": "python", "version": "2.0.0", "executable": "beta-cli"},
        "gamma": {"runtime": "system", "version": None},
        "runner": {"runtime": "python", "version": "9.0.0"},
    },
    "hooks": {
        "py-lint": {
            "description": "Lint Python files.",
            "entry": "${alpha} check",
            "files": "\\.py$",
            "types": ["python"],
            "tools": ["alpha"],
        },
        "py-format": {
            "entry": "${alpha} format",
            "files": "\\.py$",
            "types": ["python"],
            "tools": ["alpha"],
        },
        "beta-new": {"entry": "${beta}", "tools": ["beta"]},
        "beta-old": {"entry": "${beta} --legacy", "tools": [{"id": "beta", "version": "1.0.0"}]},
        "shell": {"entry": "gamma -x", "types": ["shell"], "stages": ["pre-push"], "tools": ["gamma"]},
    },
}


@pytest.fixture
def builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def store(tmp_path: Path, builder: FakeBuilder) -> LocalToolStore:
    return LocalToolStore(
        tmp_path / "store",
        builders={"python": builder, "node": builder, "system": builder},
    )


@pytest.fixture
def catalog(tmp_path: Path) -> HookCatalog:
    """Return the small test catalog, loaded through schema validation."""

    document = tmp_path / "test-catalog.json"
    document.write_text(json.dumps(TEST_CATALOG), encoding="utf-8")
    return CatalogLoader().load([document])


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Return a git project root declaring ruff, ruff-format and shellcheck."""

    root = tmp_path / "project"
    (root / ".git" / "hooks").mkdir(parents=True)
    (root / ".hookcompose.toml").write_text(
        'excludes = ["^vendor/"]\n'
        "\n"
        "[hooks.ruff]\n"
        "enabled = true\n"
        "\n"
        "[hooks.ruff-format]\n"
        "enabled = true\n"
        "\n"
        "[hooks.shellcheck]\n"
        "enabled = true\n"
        'args = ["--severity", "warning"]\n',
        encoding="utf-8",
    )
    return root
