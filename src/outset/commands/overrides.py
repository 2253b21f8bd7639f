"""
Override command for Outset.

An override re-enables a once item that has already run. Bare script names
are taken to be in the login-once directory.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from typing import List

import typer

from outset.commands import get_outset
from outset.config import format_timestamp
from outset.lifecycle import PrivilegeError
from outset.storage import StoreError

app = typer.Typer(help="Manage run-once overrides")


@app.command("add")
def add_command(
    ctx: typer.Context,
    scripts: List[str] = typer.Argument(..., help="Script names or absolute paths"),
):
    """Allow once items to run one more time. Requires root.

    Examples:
        outset override add setup-dock.sh
        outset override add /usr/local/outset/login-privileged-once/fix.sh
    """
    outset = get_outset(ctx)
    try:
        outset.add_overrides(scripts)
    except (PrivilegeError, StoreError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    scripts: List[str] = typer.Argument(..., help="Script names or absolute paths"),
):
    """Drop overrides. Requires root."""
    outset = get_outset(ctx)
    try:
        outset.remove_overrides(scripts)
    except (PrivilegeError, StoreError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("list")
def list_command(ctx: typer.Context):
    """Show overrides and when they were added."""
    outset = get_outset(ctx)
    overrides = outset.preferences.override_login_once
    if not overrides:
        typer.echo("No overrides.")
        return
    for path, when in sorted(overrides.items()):
        typer.echo(f"{path}: {format_timestamp(when)}")
