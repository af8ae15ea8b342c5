# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Immutable tool and hook descriptor models backing the catalog."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final, Literal, cast

from ..errors import CatalogIntegrityError
from .utils import FieldReader, JSONValue, expect_mapping

RuntimeName = Literal["python", "node", "system"]
RUNTIMES: Final[tuple[RuntimeName, ...]] = ("python", "node", "system")

DEFAULT_FILES: Final[str] = ""
DEFAULT_EXCLUDE: Final[str] = "^$"
DEFAULT_LANGUAGE: Final[str] = "system"


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Catalog entry describing how a tool is acquired.

    Attributes:
        id: Unique tool identifier referenced by hook descriptors.
        runtime: Runtime responsible for building the tool.
        package: Distribution name installed by the runtime.
        version: Pinned version, ``None`` when any version is acceptable.
        executable: Executable name exposed by the installed package.
    """

    id: str
    runtime: RuntimeName
    package: str
    version: str | None
    executable: str

    @classmethod
    def from_mapping(cls, tool_id: str, data: Mapping[str, JSONValue], *, context: str) -> ToolSpec:
        """Build a :class:`ToolSpec` from a catalog JSON object.

        Args:
            tool_id: Identifier the entry is registered under.
            data: Raw JSON object describing the tool.
            context: Human-readable location used in error messages.

        Returns:
            ToolSpec: Parsed tool specification.

        Raises:
            CatalogIntegrityError: If the runtime is unsupported.
        """

        fields = FieldReader(data, context)
        runtime = fields.text("runtime")
        if runtime not in RUNTIMES:
            raise CatalogIntegrityError(f"{context}: unsupported runtime '{runtime}'")
        return cls(
            id=tool_id,
            runtime=cast(RuntimeName, runtime),
            package=fields.text_or("package", tool_id),
            version=fields.optional_text("version"),
            executable=fields.text_or("executable", tool_id),
        )

    def dependency(self, version: str | None = None) -> ToolDependency:
        """Return the dependency for this tool, optionally re-pinned to ``version``."""

        spec = self if version is None else replace(self, version=version)
        return ToolDependency(spec=spec)


@dataclass(frozen=True, slots=True)
class ToolDependency:
    """A concrete tool request identified by its content fingerprint."""

    spec: ToolSpec

    @property
    def id(self) -> str:
        """Return the tool identifier."""

        return self.spec.id

    @property
    def version(self) -> str | None:
        """Return the requested version."""

        return self.spec.version

    @property
    def fingerprint(self) -> str:
        """Return the SHA-256 fingerprint over the canonical tool specification."""

        payload = {
            "executable": self.spec.executable,
            "id": self.spec.id,
            "package": self.spec.package,
            "runtime": self.spec.runtime,
            "version": self.spec.version,
        }
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()

    def to_json(self) -> dict[str, str | None]:
        """Return a JSON-compatible description of the dependency."""

        return {
            "id": self.spec.id,
            "runtime": self.spec.runtime,
            "package": self.spec.package,
            "version": self.spec.version,
            "executable": self.spec.executable,
            "fingerprint": self.fingerprint,
        }


@dataclass(frozen=True, slots=True)
class ToolReference:
    """Reference from a hook descriptor to a catalog tool."""

    id: str
    version: str | None = None


@dataclass(frozen=True, slots=True)
class HookDescriptor:
    """Catalog-defined default metadata for a hook identifier."""

    id: str
    name: str
    description: str
    entry: str
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
    tools: tuple[ToolReference, ...]
    source: Path | None = None

    @classmethod
    def from_mapping(
        cls,
        hook_id: str,
        data: Mapping[str, JSONValue],
        *,
        context: str,
        source: Path | None = None,
    ) -> HookDescriptor:
        """Build a :class:`HookDescriptor` from a catalog JSON object.

        Args:
            hook_id: Identifier the hook is registered under.
            data: Raw JSON object describing the hook.
            context: Human-readable location used in error messages.
            source: Catalog document the descriptor was read from.

        Returns:
            HookDescriptor: Parsed descriptor.
        """

        fields = FieldReader(data, context)
        return cls(
            id=hook_id,
            name=fields.text_or("name", hook_id),
            description=fields.text_or("description", ""),
            entry=fields.text("entry"),
            language=fields.text_or("language", DEFAULT_LANGUAGE),
            files=fields.text_or("files", DEFAULT_FILES),
            exclude=fields.text_or("exclude", DEFAULT_EXCLUDE),
            types=fields.texts("types") or ("file",),
            types_or=fields.texts("types_or"),
            exclude_types=fields.texts("exclude_types"),
            stages=fields.texts("stages"),
            pass_filenames=fields.flag("pass_filenames", default=True),
            require_serial=fields.flag("require_serial", default=False),
            always_run=fields.flag("always_run", default=False),
            tools=_tool_references(fields),
            source=source,
        )


def _tool_references(fields: FieldReader) -> tuple[ToolReference, ...]:
    references: list[ToolReference] = []
    for index, item in enumerate(fields.items("tools")):
        if isinstance(item, str):
            references.append(ToolReference(id=item))
            continue
        reference = FieldReader(
            expect_mapping(item, key=f"tools[{index}]", context=fields.context),
            f"{fields.context}.tools[{index}]",
        )
        references.append(ToolReference(id=reference.text("id"), version=reference.optional_text("version")))
    return tuple(references)


__all__ = [
    "DEFAULT_EXCLUDE",
    "DEFAULT_FILES",
    "DEFAULT_LANGUAGE",
    "HookDescriptor",
    "RUNTIMES",
    "RuntimeName",
    "ToolDependency",
    "ToolReference",
    "ToolSpec",
]
