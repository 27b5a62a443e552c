"""
CLI commands for installing, upgrading and removing tools.

Thin wrappers over ``toolshed.core.services.tool_install``.

Usage::

    toolshed install              # every tool
    toolshed install oc yq
    toolshed upgrade              # every installed tool
    toolshed remove ocm
    toolshed remove all
"""

from __future__ import annotations

import click

from toolshed.core.errors import ToolshedError
from toolshed.core.reliability.cancellation import CancellationToken
from toolshed.ui.cli.helpers import (
    echo_outcome,
    echo_start,
    fail,
    get_registry,
    print_summary,
    resolve_tools,
    warn_if_not_on_path,
)


def _tool_args(func):
    return click.argument("names", nargs=-1, metavar="[all|TOOL...]")(func)


# ── install ─────────────────────────────────────────────────────


@click.command()
@_tool_args
@click.pass_context
def install(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Install one or more tools (all of them by default)."""
    registry = get_registry(ctx)
    tools = resolve_tools(registry, names)
    cache = registry.new_cache()

    click.echo("Installing the following tools:")
    for tool in tools:
        try:
            version = registry.latest_version(tool, cache)
        except ToolshedError:
            version = "unknown"
        click.echo(f"- {tool.name} {version}")

    cancel = CancellationToken()
    try:
        report = registry.bulk_install(
            tools,
            cache=cache,
            cancel=cancel,
            on_start=echo_start("Installing"),
            on_result=echo_outcome,
        )
    except ToolshedError as e:
        fail(f"failed to create installation directory: {e}", e.hint)
        return

    print_summary(report)
    warn_if_not_on_path(registry.layout)


# ── upgrade ─────────────────────────────────────────────────────


@click.command()
@_tool_args
@click.pass_context
def upgrade(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Upgrade tools (every installed tool by default)."""
    registry = get_registry(ctx)
    if not names or "all" in names:
        tools = [t for t in registry.tools() if registry.is_installed(t)]
        if not tools:
            click.echo("No tools are installed; nothing to upgrade.")
            return
    else:
        tools = resolve_tools(registry, names)

    cache = registry.new_cache()
    checks = registry.check_upgrades(tools, cache)

    click.echo("Upgrading the following tools:")
    for check in checks:
        name = check.tool.name
        if check.error is not None:
            click.secho(f"- {name}: failed to determine version: {check.error}", fg="red")
        elif not check.needed:
            click.echo(
                f"- {name} is already installed with latest version {check.latest} "
                "and will not be upgraded"
            )
        else:
            click.echo(f"- {name} {check.installed or 'not installed'} -> {check.latest}")

    cancel = CancellationToken()
    try:
        report = registry.bulk_upgrade(
            tools,
            cache=cache,
            checks=checks,
            cancel=cancel,
            on_start=echo_start("Installing"),
            on_result=_echo_upgrade_outcome,
        )
    except ToolshedError as e:
        fail(f"failed to create installation directory: {e}", e.hint)
        return

    print_summary(report)
    if any(o.ok for o in report.outcomes):
        warn_if_not_on_path(registry.layout)


def _echo_upgrade_outcome(outcome) -> None:
    # up-to-date tools were already listed above
    if outcome.status == "skipped" and not outcome.hint:
        return
    echo_outcome(outcome)


# ── remove ──────────────────────────────────────────────────────


@click.command()
@_tool_args
@click.pass_context
def remove(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Remove tools.  ``all`` deletes the whole install directory."""
    if not names:
        click.echo("No tools specified to be removed. In order to remove all tools, explicitly specify 'all'")
        return

    registry = get_registry(ctx)
    if "all" in names:
        click.echo(f"Removing all tools from {registry.layout.root_dir}")
        try:
            registry.remove_all()
        except ToolshedError as e:
            fail(f"failed to remove all tools: {e}", e.hint)
        click.echo("Successfully removed all tools")
        return

    tools = resolve_tools(registry, names)
    report = registry.remove(tools, on_start=echo_start("Removing"), on_result=echo_outcome)
    print_summary(report)
