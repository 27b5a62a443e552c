"""
Shared CLI plumbing: registry construction and outcome printing.
"""

from __future__ import annotations

import os
import sys

import click

from toolshed.core.errors import ToolshedError
from toolshed.core.models.outcome import BatchReport, ToolOutcome
from toolshed.core.models.tool import ToolSpec

_STATUS_STYLE = {
    "ok": ("✅", "green"),
    "skipped": ("⏭️ ", "yellow"),
    "failed": ("❌", "red"),
    "cancelled": ("⛔", "yellow"),
}


def fail(message: str, hint: str | None = None) -> None:
    """Print a startup/configuration error and exit 1."""
    click.secho(f"❌ {message}", fg="red", err=True)
    if hint:
        click.echo(f"   {hint}", err=True)
    sys.exit(1)


def get_registry(ctx: click.Context):
    """Build (once per command) the registry from the loaded settings."""
    if "registry" not in ctx.obj:
        from toolshed.core.config.loader import load_settings
        from toolshed.core.services.tool_install.orchestration import build_registry

        try:
            settings = load_settings(ctx.obj.get("config_path"))
            ctx.obj["registry"] = build_registry(settings)
        except ToolshedError as e:
            fail(str(e), e.hint)
    return ctx.obj["registry"]


def resolve_tools(registry, names: tuple[str, ...]) -> list[ToolSpec]:
    try:
        return registry.resolve(list(names))
    except ToolshedError as e:
        fail(str(e), e.hint)
        return []


def echo_start(verb: str):
    def _start(tool: ToolSpec) -> None:
        click.echo()
        click.echo(f"{verb} {tool.name}")
    return _start


def echo_outcome(outcome: ToolOutcome) -> None:
    """One line per finished tool, as it finishes."""
    if outcome.status == "ok":
        click.echo(f"{outcome.tool}: {outcome.message or 'done'}")
    elif outcome.status == "failed":
        click.secho(f"Encountered error with {outcome.tool}: {outcome.error}", fg="red")
        if outcome.hint:
            click.echo(outcome.hint)
        click.echo("Skipping...")
    elif outcome.status == "skipped" and outcome.hint:
        click.secho(f"{outcome.tool}: {outcome.message}", fg="yellow")
        click.echo(outcome.hint)


def print_summary(report: BatchReport) -> None:
    """Per-tool summary at the end of a batch."""
    if not report.outcomes:
        return
    click.echo()
    click.secho(f"Summary ({report.operation}):", bold=True)
    for outcome in report.outcomes:
        icon, color = _STATUS_STYLE[outcome.status]
        detail = outcome.error if outcome.failed else (outcome.message or outcome.version or "")
        click.secho(f"   {icon} {outcome.tool}", fg=color, nl=False)
        click.echo(f"  {detail}" if detail else "")
        if outcome.hint and not outcome.ok:
            click.echo(f"      {outcome.hint}")


def warn_if_not_on_path(layout) -> None:
    """Advise adding the latest directory to $PATH; never edits shell config."""
    latest_dir = layout.latest_dir
    path_env = os.environ.get("PATH")
    if path_env is None:
        click.secho(
            f"\n⚠️  Couldn't determine $PATH. Make sure '{latest_dir}' is on your PATH to use the installed tools.",
            fg="yellow",
        )
        return
    if layout.on_path(path_env):
        return
    click.secho(
        f"\n⚠️  '{latest_dir}' is not in your $PATH. Add it to use the installed tools:",
        fg="yellow",
    )
    click.echo(f'   export PATH="{latest_dir}:$PATH"')
