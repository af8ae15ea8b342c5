# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Render hook instances into the commit-time runner's config format.

The output is JSON, which the pre-commit runner reads as YAML. Rendering is a
pure function of its inputs so the installer can compare bytes.
"""

from __future__ import annotations

import hashlib
import json
import re
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Final

from .config import GlobalSettings
from .environment import Environment
from .resolver import HookInstance

PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Za-z0-9_.+-]+)\}")
EMPTY_EXCLUDE: Final[str] = "^$"


@dataclass(frozen=True, slots=True)
class RenderedConfig:
    """Serialized runner config plus its parsed form."""

    content: bytes
    document: Mapping[str, Any]

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.content).hexdigest()

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


def _substitute(match: re.Match[str], *, paths: Mapping[str, Path]) -> str:
    tool_id = match.group(1)
    path = paths.get(tool_id)
    return match.group(0) if path is None else shlex.quote(str(path))


def bind_entry(instance: HookInstance, environment: Environment) -> str:
    """Return ``instance``'s command with tool references bound to absolute paths.

    ``${tool-id}`` placeholders naming a declared dependency are replaced, as
    is a leading bare word equal to a declared tool's executable name. Extra
    arguments are shell-quoted and appended.

    Args:
        instance: Resolved hook instance.
        environment: Composed environment holding every declared tool.

    Returns:
        str: Self-contained command line.
    """

    paths = {dependency.id: environment.path(dependency.id) for dependency in instance.tools}
    entry = PLACEHOLDER.sub(partial(_substitute, paths=paths), instance.entry)

    head, _, rest = entry.partition(" ")
    for dependency in instance.tools:
        if head == dependency.spec.executable:
            quoted = shlex.quote(str(paths[dependency.id]))
            entry = f"{quoted} {rest}" if rest else quoted
            break

    if instance.args:
        entry = f"{entry} {shlex.join(instance.args)}"
    return entry


def _hook_record(instance: HookInstance, environment: Environment) -> dict[str, Any]:
    return {
        "id": instance.id,
        "name": instance.name,
        "entry": bind_entry(instance, environment),
        "language": instance.language,
        "files": instance.files,
        "exclude": instance.exclude,
        "types": list(instance.types),
        "types_or": list(instance.types_or),
        "exclude_types": list(instance.exclude_types),
        "stages": list(instance.stages),
        "pass_filenames": instance.pass_filenames,
        "require_serial": instance.require_serial,
        "always_run": instance.always_run,
        "fail_fast": instance.fail_fast,
        "verbose": instance.verbose,
    }


def global_exclude(patterns: Sequence[str]) -> str:
    """Join global exclude patterns into the runner's single top-level regex."""

    if not patterns:
        return EMPTY_EXCLUDE
    return "|".join(f"({pattern})" for pattern in patterns)


def serialize(
    instances: Sequence[HookInstance],
    environment: Environment,
    settings: GlobalSettings,
) -> RenderedConfig:
    """Render ``instances`` and ``settings`` into a byte-stable config.

    Args:
        instances: Enabled hook instances in their resolved order.
        environment: Environment providing absolute tool paths.
        settings: Global settings copied through verbatim.

    Returns:
        RenderedConfig: Serialized config and its parsed document.
    """

    document: dict[str, Any] = {
        "default_stages": list(settings.default_stages),
        "exclude": global_exclude(settings.excludes),
        "fail_fast": settings.fail_fast,
        "repos": [
            {
                "repo": "local",
                "hooks": [_hook_record(instance, environment) for instance in instances],
            }
        ],
    }
    content = json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8") + b"\n"
    return RenderedConfig(content=content, document=document)


__all__ = ["EMPTY_EXCLUDE", "PLACEHOLDER", "RenderedConfig", "bind_entry", "global_exclude", "serialize"]
