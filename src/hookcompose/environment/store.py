# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Content-addressed local tool store.

Layout below the store root::

    tools/<fingerprint>-<id>-<version>/   built artifact plus ``artifact.json``
    generations/<digest>/                 published ``config.json`` + ``environment.json``
    roots/<project-key>                   symlink to a project's installed config link
    locks/<fingerprint>.lock              cross-process build lock
    tmp/                                  staging area for builds and atomic writes

A tool artifact or generation stays alive while a root chain resolves to it.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import os
import re
import shutil
import tempfile
import threading
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from ..catalog import ToolDependency
from ..errors import BuildError
from .builders import ToolBuilder, default_builders

ARTIFACT_MANIFEST: Final[str] = "artifact.json"
GENERATION_CONFIG: Final[str] = "config.json"
GENERATION_ENVIRONMENT: Final[str] = "environment.json"


@runtime_checkable
class ToolStore(Protocol):
    """Capability the composer needs from a build/cache store."""

    def materialize(self, dependency: ToolDependency) -> Path:
        """Return the absolute executable for ``dependency``, building it at most once.

        Raises:
            BuildError: If the artifact cannot be produced.
        """
        ...

    def lookup(self, dependency: ToolDependency) -> Path | None:
        """Return the executable for an already materialized ``dependency``."""
        ...


def _slugify(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "-", value)


def write_atomic(path: Path, data: bytes, *, staging: Path) -> None:
    """Write ``data`` to ``path`` through a temp file and ``os.replace``."""

    staging.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=staging, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as stream:
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _manifest_bytes(environment: Mapping[str, object]) -> bytes:
    return json.dumps(environment, indent=2, sort_keys=True).encode("utf-8") + b"\n"


def _has_bytes(path: Path, data: bytes) -> bool:
    try:
        return path.read_bytes() == data
    except OSError:
        return False


def swap_symlink(path: Path, target: Path) -> None:
    """Point ``path`` at ``target`` through a uniquely named temp link and ``os.replace``."""

    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    tmp.symlink_to(target)
    try:
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


@dataclass(slots=True)
class LocalToolStore:
    """Filesystem store guaranteeing at-most-one build per fingerprint."""

    root: Path
    builders: Mapping[str, ToolBuilder] | None = None
    _builders: Mapping[str, ToolBuilder] = field(default_factory=dict, init=False, repr=False)
    _guard: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _locks: dict[str, threading.Lock] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.root = self.root.expanduser().resolve()
        self._builders = default_builders(self.root / "cache") if self.builders is None else self.builders

    @property
    def tools_dir(self) -> Path:
        return self.root / "tools"

    @property
    def generations_dir(self) -> Path:
        return self.root / "generations"

    @property
    def roots_dir(self) -> Path:
        return self.root / "roots"

    @property
    def staging_dir(self) -> Path:
        return self.root / "tmp"

    def artifact_dir(self, dependency: ToolDependency) -> Path:
        """Return the content-addressed directory for ``dependency``."""

        name = f"{dependency.fingerprint[:32]}-{dependency.id}-{dependency.version or 'any'}"
        return self.tools_dir / _slugify(name)

    def lookup(self, dependency: ToolDependency) -> Path | None:
        """Return the executable recorded for ``dependency`` when already built."""

        manifest = self.artifact_dir(dependency) / ARTIFACT_MANIFEST
        try:
            payload = json.loads(manifest.read_text(encoding="utf-8"))
        except (FileNotFoundError, json.JSONDecodeError):
            return None
        if payload.get("fingerprint") != dependency.fingerprint:
            return None
        return manifest.parent / str(payload["executable"])

    def materialize(self, dependency: ToolDependency) -> Path:
        """Build ``dependency`` unless an artifact already exists.

        Concurrent callers for the same fingerprint, in this process or
        another, block until the first build finishes and then share its
        result. Builds run in a staging directory that is renamed into place,
        so a partial artifact is never visible.

        Args:
            dependency: Tool dependency to materialize.

        Returns:
            Path: Absolute path to the tool executable.

        Raises:
            BuildError: If no builder handles the runtime or the build fails.
        """

        existing = self.lookup(dependency)
        if existing is not None:
            return existing

        with self._thread_lock(dependency.fingerprint), self._file_lock(dependency.fingerprint):
            existing = self.lookup(dependency)
            if existing is not None:
                return existing
            return self._build(dependency)

    def _build(self, dependency: ToolDependency) -> Path:
        builder = self._builders.get(dependency.spec.runtime)
        if builder is None:
            raise BuildError(f"no builder registered for runtime '{dependency.spec.runtime}'")

        self.staging_dir.mkdir(parents=True, exist_ok=True)
        self.tools_dir.mkdir(parents=True, exist_ok=True)
        target = self.artifact_dir(dependency)
        staging = Path(tempfile.mkdtemp(dir=self.staging_dir, prefix=f"{dependency.id}."))
        try:
            executable = builder.build(dependency.spec, staging)
            manifest = {
                **dependency.to_json(),
                "executable": executable.relative_to(staging).as_posix(),
            }
            (staging / ARTIFACT_MANIFEST).write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
            if target.exists():
                shutil.rmtree(target)
            os.rename(staging, target)
        except BuildError:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise BuildError(f"{dependency.id}: {exc}") from exc

        built = self.lookup(dependency)
        if built is None:
            raise BuildError(f"{dependency.id}: artifact manifest unreadable after build")
        return built

    @contextmanager
    def _thread_lock(self, fingerprint: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(fingerprint, threading.Lock())
        with lock:
            yield

    @contextmanager
    def _file_lock(self, name: str, *, blocking: bool = True) -> Iterator[bool]:
        locks_dir = self.root / "locks"
        locks_dir.mkdir(parents=True, exist_ok=True)
        with (locks_dir / f"{name}.lock").open("a+") as handle:
            flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
            try:
                fcntl.flock(handle.fileno(), flags)
            except BlockingIOError:
                yield False
                return
            try:
                yield True
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def generation_path(self, config: bytes, environment: Mapping[str, object]) -> Path:
        """Return where the generation for ``config`` and ``environment`` lives.

        The name covers both the config bytes and the environment manifest, so
        a config that reads the same but runs a different runner or tool set
        gets its own generation.
        """

        hasher = hashlib.sha256(config)
        hasher.update(b"\0")
        hasher.update(_manifest_bytes(environment))
        return self.generations_dir / hasher.hexdigest() / GENERATION_CONFIG

    def publish_generation(self, config: bytes, environment: Mapping[str, object]) -> Path:
        """Store ``config`` and its environment manifest as a generation.

        Publishing the same config and manifest twice writes nothing the
        second time.

        Args:
            config: Rendered config bytes.
            environment: JSON-compatible environment manifest.

        Returns:
            Path: Path to the generation's ``config.json``.
        """

        config_path = self.generation_path(config, environment)
        manifest_path = config_path.with_name(GENERATION_ENVIRONMENT)
        payload = _manifest_bytes(environment)
        if _has_bytes(config_path, config) and _has_bytes(manifest_path, payload):
            return config_path
        config_path.parent.mkdir(parents=True, exist_ok=True)
        write_atomic(manifest_path, payload, staging=self.staging_dir)
        write_atomic(config_path, config, staging=self.staging_dir)
        return config_path

    def root_path(self, link: Path) -> Path:
        """Return the GC root location registered for the project ``link``."""

        key = hashlib.sha256(str(link).encode("utf-8")).hexdigest()[:32]
        return self.roots_dir / key

    def has_root(self, link: Path) -> bool:
        root = self.root_path(link)
        return root.is_symlink() and os.readlink(root) == str(link)

    def add_root(self, link: Path) -> bool:
        """Register ``link`` as an indirect GC root; returns ``True`` when written."""

        if self.has_root(link):
            return False
        self.roots_dir.mkdir(parents=True, exist_ok=True)
        swap_symlink(self.root_path(link), link)
        return True

    def live_generations(self) -> set[Path]:
        """Return generation directories reachable from a GC root."""

        live: set[Path] = set()
        if not self.roots_dir.is_dir():
            return live
        generations = self.generations_dir.resolve() if self.generations_dir.exists() else self.generations_dir
        for root in self.roots_dir.iterdir():
            if not root.is_symlink():
                continue
            target = root.resolve()
            if target.parent.parent == generations and target.is_file():
                live.add(target.parent)
        return live

    def collect_garbage(self) -> list[Path]:
        """Delete dead roots, generations and tool artifacts.

        Tool artifacts referenced by a live generation's environment manifest
        survive, as do artifacts whose build lock is currently held.

        Returns:
            list[Path]: Removed paths in deletion order.
        """

        removed: list[Path] = []
        with self._file_lock("gc"):
            generations = self.generations_dir.resolve() if self.generations_dir.exists() else None
            if self.roots_dir.is_dir():
                for root in sorted(self.roots_dir.iterdir()):
                    target = root.resolve()
                    if generations is None or target.parent.parent != generations or not target.is_file():
                        root.unlink()
                        removed.append(root)

            live = self.live_generations()
            keep_tools: set[str] = set()
            for generation in live:
                keep_tools.update(self._referenced_tools(generation))

            if self.generations_dir.is_dir():
                for generation in sorted(self.generations_dir.iterdir()):
                    if generation.resolve() not in live:
                        shutil.rmtree(generation)
                        removed.append(generation)

            if self.tools_dir.is_dir():
                for artifact in sorted(self.tools_dir.iterdir()):
                    if artifact.name in keep_tools:
                        continue
                    fingerprint = self._artifact_fingerprint(artifact)
                    if fingerprint is not None:
                        with self._file_lock(fingerprint, blocking=False) as acquired:
                            if not acquired:
                                continue
                            shutil.rmtree(artifact)
                    else:
                        shutil.rmtree(artifact)
                    removed.append(artifact)
        return removed

    def _referenced_tools(self, generation: Path) -> set[str]:
        try:
            payload = json.loads((generation / GENERATION_ENVIRONMENT).read_text(encoding="utf-8"))
        except (FileNotFoundError, json.JSONDecodeError):
            return set()
        names: set[str] = set()
        for entry in payload.get("tools", {}).values():
            path = Path(str(entry.get("path", "")))
            try:
                relative = path.relative_to(self.tools_dir)
            except ValueError:
                continue
            if relative.parts:
                names.add(relative.parts[0])
        return names

    @staticmethod
    def _artifact_fingerprint(artifact: Path) -> str | None:
        try:
            payload = json.loads((artifact / ARTIFACT_MANIFEST).read_text(encoding="utf-8"))
        except (FileNotFoundError, json.JSONDecodeError, NotADirectoryError):
            return None
        value = payload.get("fingerprint")
        return value if isinstance(value, str) else None


__all__ = [
    "ARTIFACT_MANIFEST",
    "GENERATION_CONFIG",
    "GENERATION_ENVIRONMENT",
    "LocalToolStore",
    "ToolStore",
    "swap_symlink",
    "write_atomic",
]
