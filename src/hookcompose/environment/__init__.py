# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tool environment composition and the local content-addressed store."""

from __future__ import annotations

from .builders import NodeToolBuilder, PythonToolBuilder, SystemToolBuilder, ToolBuilder, default_builders
from .composer import Environment, ResolvedTool, compose, lookup_environment, plan
from .store import LocalToolStore, ToolStore

__all__ = [
    "Environment",
    "LocalToolStore",
    "NodeToolBuilder",
    "PythonToolBuilder",
    "ResolvedTool",
    "SystemToolBuilder",
    "ToolBuilder",
    "ToolStore",
    "compose",
    "default_builders",
    "lookup_environment",
    "plan",
]
