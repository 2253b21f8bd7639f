# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Administrative sub-commands for Outset."""

import typer

from outset.config import OutsetPaths
from outset.lifecycle import Outset
from outset.storage import StoreError


def get_outset(ctx: typer.Context) -> Outset:
    """Build the Outset instance for a command, exiting 1 if a store is unusable."""
    obj = ctx.ensure_object(dict)
    if "outset" not in obj:
        try:
            obj["outset"] = Outset.from_environment(obj.get("paths") or OutsetPaths.from_env())
        except StoreError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
    return obj["outset"]
