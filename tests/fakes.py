# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Test doubles shared across the suite."""

from __future__ import annotations

import threading
import time
from pathlib import Path

from hookcompose.catalog import ToolSpec
from hookcompose.environment import ToolBuilder
from hookcompose.errors import BuildError


class FakeBuilder(ToolBuilder):
    """Builder writing a stub executable and recording each build."""

    runtime = "fake"

    def __init__(self, *, fail: set[str] | None = None, delay: float = 0.0) -> None:
        self.fail = fail or set()
        self.delay = delay
        self.built: list[str] = []
        self._lock = threading.Lock()

    def _install(self, spec: ToolSpec, prefix: Path) -> Path:
        with self._lock:
            self.built.append(spec.id)
        if self.delay:
            time.sleep(self.delay)
        if spec.id in self.fail:
            raise BuildError(f"{spec.id}: simulated build failure")
        bin_dir = prefix / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        executable = bin_dir / spec.executable
        executable.write_text(f"#!/bin/sh\necho {spec.id} {spec.version}\n", encoding="utf-8")
        executable.chmod(0o755)
        return executable
