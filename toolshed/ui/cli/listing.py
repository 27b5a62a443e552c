"""
CLI commands for listing tools.

Usage::

    toolshed list available
    toolshed list installed --json
"""

from __future__ import annotations

import json

import click

from toolshed.ui.cli.helpers import get_registry


@click.group("list")
def listing() -> None:
    """List available or installed tools."""


@listing.command("available")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_available(ctx: click.Context, as_json: bool) -> None:
    """List every tool that can be installed."""
    registry = get_registry(ctx)
    if as_json:
        data = [{"name": t.name, "executable": t.executable, "description": t.description} for t in registry.tools()]
        click.echo(json.dumps(data, indent=2))
        return
    for tool in registry.tools():
        click.echo(tool.name)


@listing.command("installed")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_installed(ctx: click.Context, as_json: bool) -> None:
    """List installed tools and their linked versions."""
    registry = get_registry(ctx)
    rows = registry.list_installed()

    if as_json:
        data = [
            {"name": tool.name, "version": version, "error": str(err) if err else None}
            for tool, version, err in rows
        ]
        click.echo(json.dumps(data, indent=2))
        return

    if not rows:
        click.echo("No tools installed.")
        return
    for tool, version, err in rows:
        if err is not None:
            click.secho(f"{tool.name}  (error: {err})", fg="red")
        else:
            click.echo(f"{tool.name}  {version or 'not linked'}")
