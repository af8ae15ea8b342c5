# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Hook descriptor catalog: static data plus lookup helpers."""

from __future__ import annotations

from .loader import BUILTIN_CATALOG, CatalogLoader, HookCatalog, load_catalog
from .models import HookDescriptor, ToolDependency, ToolReference, ToolSpec

__all__ = [
    "BUILTIN_CATALOG",
    "CatalogLoader",
    "HookCatalog",
    "HookDescriptor",
    "ToolDependency",
    "ToolReference",
    "ToolSpec",
    "load_catalog",
]
