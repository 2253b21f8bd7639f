# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Ignored users command for Outset.

Users on the ignored list are exempt from all login-phase processing.
"""

from typing import List

import typer

from outset.commands import get_outset
from outset.lifecycle import PrivilegeError
from outset.storage import StoreError

app = typer.Typer(help="Manage users exempt from login processing")


@app.command("add")
def add_command(
    ctx: typer.Context,
    usernames: List[str] = typer.Argument(..., help="One or more usernames"),
):
    """Add users to the ignored list. Requires root."""
    outset = get_outset(ctx)
    try:
        outset.add_ignored_users(usernames)
    except (PrivilegeError, StoreError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    usernames: List[str] = typer.Argument(..., help="One or more usernames"),
):
    """Remove users from the ignored list. Requires root."""
    outset = get_outset(ctx)
    try:
        outset.remove_ignored_users(usernames)
    except (PrivilegeError, StoreError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("list")
def list_command(ctx: typer.Context):
    """Show the ignored users."""
    outset = get_outset(ctx)
    if not outset.preferences.ignored_users:
        typer.echo("No ignored users.")
        return
    for username in outset.preferences.ignored_users:
        typer.echo(username)
