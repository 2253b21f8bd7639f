# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Main CLI entry point for Outset.

Dumb trigger: launchd calls one lifecycle command per invocation. All
processing logic lives in outset.lifecycle and outset.items.
"""

import logging

import typer

from outset import __version__, system
from outset.commands import get_outset, hashes, ignored, overrides
from outset.config import OutsetPaths
from outset.logs import setup_logging
from outset.storage import StoreError


app = typer.Typer(
    name="outset",
    help="Process scripts and packages at boot, on demand, or login.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Log debug messages"),
):
    """Process scripts and packages at boot, on demand, or login."""
    paths = OutsetPaths.from_env()
    setup_logging(paths.log_path, debug=debug)
    ctx.obj = {"paths": paths, "debug": debug}
    if debug:
        logger.debug(f"Outset version {__version__}")
        system.sys_report()


def _run_entry_point(ctx: typer.Context, name: str) -> None:
    outset = get_outset(ctx)
    try:
        getattr(outset, name)()
    except StoreError as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.command()
def boot(ctx: typer.Context):
    """Used by launchd for scheduled runs at boot."""
    _run_entry_point(ctx, "boot")


@app.command()
def login(ctx: typer.Context):
    """Used by launchd for scheduled runs at login."""
    _run_entry_point(ctx, "login")


@app.command("login-privileged")
def login_privileged(ctx: typer.Context):
    """Used by launchd for scheduled privileged runs at login."""
    _run_entry_point(ctx, "login_privileged")


@app.command("on-demand")
def on_demand(ctx: typer.Context):
    """Process scripts on demand."""
    _run_entry_point(ctx, "on_demand")


@app.command("login-every")
def login_every(ctx: typer.Context):
    """Manually process scripts in login-every."""
    _run_entry_point(ctx, "login_every")


@app.command("login-once")
def login_once(ctx: typer.Context):
    """Manually process scripts in login-once."""
    _run_entry_point(ctx, "login_once")


@app.command()
def cleanup(ctx: typer.Context):
    """Used by launchd to clean up the on-demand directory."""
    _run_entry_point(ctx, "cleanup")


@app.command()
def version():
    """Show version information."""
    typer.echo(__version__)


app.add_typer(ignored.app, name="ignored")
app.add_typer(overrides.app, name="override")
app.add_typer(hashes.app, name="hash")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
