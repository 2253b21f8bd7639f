"""
Hash command for Outset.

Computes SHA-256 digests and manages the trust mapping. Once the mapping
holds any entry, only items whose digest matches are run.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from typing import List

import typer

from outset.commands import get_outset
from outset.lifecycle import PrivilegeError, compute_hashes
from outset.storage import StoreError

app = typer.Typer(help="Compute item hashes and manage the trust mapping")


@app.command("compute")
def compute_command(
    ctx: typer.Context,
    files: List[str] = typer.Argument(..., help="Files to hash, or 'all'"),
):
    """Compute SHA-256 hashes.

    Use the keyword 'all' to hash every item in every managed directory and
    rewrite the trust mapping (requires root).

    Examples:
        outset hash compute /usr/local/outset/login-once/setup.sh
        outset hash compute all
    """
    if files[0].lower() == "all":
        outset = get_outset(ctx)
        try:
            hashes = outset.regenerate_trust()
        except (PrivilegeError, StoreError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        for path, digest in sorted(hashes.items()):
            typer.echo(f"{path}: {digest}")
        return

    hashes = compute_hashes(files)
    for file_name, digest in hashes.items():
        typer.echo(f"SHA256 for file {file_name}: {digest}")
    if len(hashes) != len(files):
        raise typer.Exit(1)


@app.command("report")
def report_command(ctx: typer.Context):
    """Show the stored trust mapping."""
    outset = get_outset(ctx)
    hashes = outset.hash_report()
    typer.echo("sha256sum report")
    if not hashes:
        typer.echo("Trust mapping is empty; hash checking is off.")
        return
    for path, digest in sorted(hashes.items()):
        typer.echo(f"{path} : {digest}")
