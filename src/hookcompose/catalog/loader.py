# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Loader that validates and materialises hook catalog documents."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from ..errors import CatalogIntegrityError
from .models import HookDescriptor, ToolDependency, ToolSpec
from .utils import JSONValue, expect_mapping

DATA_ROOT: Final[Path] = Path(__file__).resolve().parent / "data"
BUILTIN_CATALOG: Final[Path] = DATA_ROOT / "hooks.json"
SCHEMA_PATH: Final[Path] = DATA_ROOT / "catalog.schema.json"


def load_document(path: Path) -> JSONValue:
    """Load a JSON document from disk.

    Args:
        path: Filesystem path to the JSON document.

    Returns:
        JSONValue: Parsed JSON value extracted from the document.

    Raises:
        CatalogIntegrityError: If the document is missing or cannot be parsed.
    """
    if not path.is_file():
        raise CatalogIntegrityError(f"{path}: catalog document not found")
    with path.open("r", encoding="utf-8") as stream:
        try:
            return json.load(stream)
        except json.JSONDecodeError as exc:
            raise CatalogIntegrityError(f"{path}: failed to parse catalog JSON") from exc


def compute_catalog_checksum(paths: Sequence[Path]) -> str:
    """Return a hex SHA-256 checksum covering the contents of ``paths``."""

    hasher = hashlib.sha256()
    for path in paths:
        hasher.update(path.name.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(path.read_bytes())
    return hasher.hexdigest()


@dataclass(frozen=True, slots=True)
class HookCatalog:
    """Static lookup from hook identifier to descriptor plus the tool table."""

    hooks: Mapping[str, HookDescriptor]
    tools: Mapping[str, ToolSpec]
    checksum: str = ""

    def __contains__(self, hook_id: object) -> bool:
        return hook_id in self.hooks

    def get(self, hook_id: str) -> HookDescriptor:
        """Return the descriptor registered under ``hook_id``.

        Raises:
            KeyError: If ``hook_id`` is not catalogued.
        """

        return self.hooks[hook_id]

    def ids(self) -> tuple[str, ...]:
        """Return catalogued hook identifiers in lexical order."""

        return tuple(sorted(self.hooks))

    def dependencies_for(
        self,
        descriptor: HookDescriptor,
        pins: Mapping[str, str] | None = None,
    ) -> tuple[ToolDependency, ...]:
        """Return the ordered tool dependencies declared by ``descriptor``.

        A descriptor-level version wins over the catalog default; ``pins`` wins
        over both.

        Args:
            descriptor: Hook descriptor whose tool references are expanded.
            pins: Optional project-wide tool version pins.

        Returns:
            tuple[ToolDependency, ...]: Dependencies in declaration order.
        """

        pins = pins or {}
        dependencies: list[ToolDependency] = []
        for reference in descriptor.tools:
            spec = self.tools[reference.id]
            version = pins.get(reference.id, reference.version)
            dependencies.append(spec.dependency(version))
        return tuple(dependencies)


@dataclass(slots=True)
class CatalogLoader:
    """Validate catalog documents against the schema and merge them."""

    schema_path: Path = SCHEMA_PATH
    _validator: Draft202012Validator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        schema = expect_mapping(load_document(self.schema_path), key="<root>", context=str(self.schema_path))
        self._validator = Draft202012Validator(schema)

    def load(self, paths: Iterable[Path] = (BUILTIN_CATALOG,)) -> HookCatalog:
        """Load and merge the catalog documents at ``paths``.

        Later documents may add tools and hooks but never redefine a hook
        identifier already registered by an earlier document.

        Args:
            paths: Catalog documents in precedence order.

        Returns:
            HookCatalog: Merged catalog.

        Raises:
            CatalogIntegrityError: On schema violations, duplicate hook ids, or
                references to unknown tools.
        """

        ordered = list(paths)
        hooks: dict[str, HookDescriptor] = {}
        tools: dict[str, ToolSpec] = {}
        for path in ordered:
            document = load_document(path)
            self._validate(document, path=path)
            mapping = expect_mapping(document, key="<root>", context=str(path))
            for tool_id, raw in expect_mapping(mapping.get("tools", {}), key="tools", context=str(path)).items():
                context = f"{path}:tools.{tool_id}"
                spec = ToolSpec.from_mapping(tool_id, expect_mapping(raw, key=tool_id, context=context), context=context)
                existing = tools.get(tool_id)
                if existing is not None and existing != spec:
                    raise CatalogIntegrityError(f"{context}: tool '{tool_id}' redefined with different metadata")
                tools[tool_id] = spec
            for hook_id, raw in expect_mapping(mapping.get("hooks", {}), key="hooks", context=str(path)).items():
                context = f"{path}:hooks.{hook_id}"
                if hook_id in hooks:
                    raise CatalogIntegrityError(f"{context}: hook '{hook_id}' is already defined")
                hooks[hook_id] = HookDescriptor.from_mapping(
                    hook_id,
                    expect_mapping(raw, key=hook_id, context=context),
                    context=context,
                    source=path,
                )

        for descriptor in hooks.values():
            missing = [reference.id for reference in descriptor.tools if reference.id not in tools]
            if missing:
                raise CatalogIntegrityError(
                    f"hook '{descriptor.id}' references unknown tool(s): {', '.join(missing)}"
                )

        return HookCatalog(hooks=hooks, tools=tools, checksum=compute_catalog_checksum(ordered))

    def _validate(self, document: JSONValue, *, path: Path) -> None:
        error = best_match(self._validator.iter_errors(document))
        if error is None:
            return
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        raise CatalogIntegrityError(f"{path}: {location}: {error.message}")


def load_catalog(extra: Sequence[Path] = ()) -> HookCatalog:
    """Return the builtin catalog merged with ``extra`` documents."""

    return CatalogLoader().load([BUILTIN_CATALOG, *extra])


__all__ = [
    "BUILTIN_CATALOG",
    "CatalogLoader",
    "HookCatalog",
    "SCHEMA_PATH",
    "compute_catalog_checksum",
    "load_catalog",
    "load_document",
]
