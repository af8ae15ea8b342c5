# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared services."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ..errors import HookComposeError
from ..installer import Installer
from ..pipeline import activate, is_current, prepare, render
from .shared import EMOJI_OPTION, ROOT_OPTION, STORE_OPTION, build_cli_logger, open_store

app = typer.Typer(
    name="hookcompose",
    help="Compose, build and install declarative commit-time hooks.",
    no_args_is_help=True,
    add_completion=False,
)


@app.command("install")
def install_command(
    root: ROOT_OPTION = Path("."),
    store: STORE_OPTION = None,
    hooks_dir: Annotated[
        Path | None,
        typer.Option("--hooks-dir", help="Register runner shims here instead of <git-dir>/hooks."),
    ] = None,
    emoji: EMOJI_OPTION = True,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress progress output.")] = False,
) -> None:
    """Build required tools, render the config and install it."""

    logger = build_cli_logger(emoji=emoji)
    try:
        handle = activate(root, store=open_store(store), hooks_dir=hooks_dir, use_emoji=emoji, quiet=quiet)
    except HookComposeError as exc:
        raise logger.abort(exc) from exc

    if handle.backups and not quiet:
        logger.warn("Backed up: " + ", ".join(str(path) for path in handle.backups))
    if handle.hooks and not quiet:
        logger.info("Registered hooks: " + ", ".join(path.name for path in handle.hooks))


@app.command("render")
def render_command(root: ROOT_OPTION = Path("."), store: STORE_OPTION = None, emoji: EMOJI_OPTION = True) -> None:
    """Print the rendered config without installing it."""

    logger = build_cli_logger(emoji=emoji)
    try:
        rendered, _ = render(prepare(root), open_store(store))
    except HookComposeError as exc:
        raise logger.abort(exc) from exc
    logger.echo(rendered.text)


@app.command("status")
def status_command(
    root: ROOT_OPTION = Path("."),
    store: STORE_OPTION = None,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only set the exit status.")] = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Exit 0 when the installed config is current, 1 otherwise."""

    logger = build_cli_logger(emoji=emoji)
    try:
        current = is_current(root, store=open_store(store))
    except HookComposeError as exc:
        if not quiet:
            logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    if not quiet:
        if current:
            logger.ok("Installed config is up to date")
        else:
            logger.warn("Installed config is stale; run `hookcompose install`")
    raise typer.Exit(code=0 if current else 1)


@app.command("shell-hook")
def shell_hook_command(
    root: ROOT_OPTION = Path("."),
    store: STORE_OPTION = None,
    command: Annotated[
        str | None,
        typer.Option("--command", help="Command used to invoke hookcompose from the script."),
    ] = None,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Print a shell snippet to `eval` on every shell entry."""

    logger = build_cli_logger(emoji=emoji)
    try:
        composition = prepare(root)
    except HookComposeError as exc:
        raise logger.abort(exc) from exc
    installer = Installer(composition.root, open_store(store), composition.config.settings, quiet=True)
    logger.echo(installer.activation_script(command=command))


@app.command("gc")
def gc_command(store: STORE_OPTION = None, emoji: EMOJI_OPTION = True) -> None:
    """Remove tool artifacts and generations no installed project references."""

    logger = build_cli_logger(emoji=emoji)
    removed = open_store(store).collect_garbage()
    for path in removed:
        logger.info(f"removed {path}")
    logger.ok(f"Collected {len(removed)} store path(s)")


@app.command("hooks")
def hooks_command(root: ROOT_OPTION = Path("."), emoji: EMOJI_OPTION = True) -> None:
    """List catalogued hooks and whether the project enables them."""

    logger = build_cli_logger(emoji=emoji)
    try:
        composition = prepare(root)
    except HookComposeError as exc:
        raise logger.abort(exc) from exc

    enabled = {instance.id for instance in composition.instances}
    table = Table(title="Hooks")
    table.add_column("Hook")
    table.add_column("Enabled")
    table.add_column("Tools")
    table.add_column("Description")
    catalog = composition.catalog
    for hook_id in catalog.ids():
        descriptor = catalog.get(hook_id)
        tools = ", ".join(
            f"{dependency.id}@{dependency.version or 'any'}"
            for dependency in catalog.dependencies_for(descriptor, composition.config.settings.tool_versions)
        )
        table.add_row(hook_id, "yes" if hook_id in enabled else "", tools, descriptor.description)
    logger.console.print(table)


__all__ = ["app"]
