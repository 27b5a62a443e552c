"""
toolshed — CLI entrypoint.

Usage:
    toolshed --help
    toolshed install [all|TOOL...]
    toolshed list installed
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from toolshed import __version__
from toolshed.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="toolshed")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to config.yml (default: $TOOLSHED_CONFIG or ~/.config/toolshed/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """toolshed — install and upgrade third-party CLI tools."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
        quiet_third_party=not debug,
    )


# ── Register command groups ─────────────────────────────────────

from toolshed.ui.cli.listing import listing  # noqa: E402
from toolshed.ui.cli.tools import install, remove, upgrade  # noqa: E402

cli.add_command(install)
cli.add_command(upgrade)
cli.add_command(remove)
cli.add_command(listing)


if __name__ == "__main__":
    cli()
