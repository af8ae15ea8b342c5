# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for project configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from hookcompose.config import (
    GlobalSettings,
    HookOverride,
    ProjectConfig,
    default_store_root,
    load_project_config,
)
from hookcompose.errors import ConfigError


def test_missing_configuration_declares_nothing(tmp_path: Path) -> None:
    config = load_project_config(tmp_path)
    assert config.hooks == {}
    assert config.settings.default_stages == ["pre-commit"]
    assert config.settings.config_path == Path(".pre-commit-config.yaml")


def test_pyproject_table_is_loaded(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "[tool.hookcompose]\n"
        'default_stages = ["commit", "push"]\n'
        'extra_catalogs = ["catalog/hooks.json"]\n'
        "[tool.hookcompose.hooks.ruff]\n"
        "enabled = true\n"
        'files = "\\\\.pyi$"\n',
        encoding="utf-8",
    )
    config = load_project_config(tmp_path)
    assert config.settings.default_stages == ["pre-commit", "pre-push"]
    assert config.settings.extra_catalogs == [tmp_path.resolve() / "catalog" / "hooks.json"]
    assert config.hooks["ruff"].enabled is True
    assert config.hooks["ruff"].files == "\\.pyi$"


def test_dedicated_file_takes_precedence(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "[tool.hookcompose.hooks.black]\nenabled = true\n",
        encoding="utf-8",
    )
    (tmp_path / ".hookcompose.toml").write_text("[hooks.isort]\nenabled = true\n", encoding="utf-8")
    config = load_project_config(tmp_path)
    assert set(config.hooks) == {"isort"}


def test_unknown_override_key_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / ".hookcompose.toml").write_text("[hooks.ruff]\nenable = true\n", encoding="utf-8")
    with pytest.raises(ConfigError, match=".hookcompose.toml"):
        load_project_config(tmp_path)


def test_invalid_toml_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / ".hookcompose.toml").write_text("[hooks\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_project_config(tmp_path)


def test_unknown_stage_is_rejected() -> None:
    with pytest.raises(ConfigError, match="unknown stage"):
        ProjectConfig.from_mapping({"hooks": {"ruff": {"enabled": True, "stages": ["sometimes"]}}})


def test_override_stages_are_normalised() -> None:
    override = HookOverride(enabled=True, stages=["push", "commit", "pre-commit"])
    assert override.stages == ["pre-commit", "pre-push"]


def test_manual_is_not_an_install_stage() -> None:
    with pytest.raises(ValueError):
        GlobalSettings(install_stages=["manual"])


def test_config_path_must_stay_inside_project() -> None:
    with pytest.raises(ValueError):
        GlobalSettings(config_path=Path("../outside.yaml"))


def test_store_root_honours_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOOKCOMPOSE_STORE", str(tmp_path / "custom"))
    assert default_store_root() == tmp_path / "custom"

    monkeypatch.delenv("HOOKCOMPOSE_STORE")
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
    assert default_store_root() == tmp_path / "xdg" / "hookcompose" / "store"
