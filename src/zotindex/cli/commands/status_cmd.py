# ABOUTME: The `zotindex status` command for inspecting the search index.
# ABOUTME: Reports format version, row counts, and when the index last synced.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from zotindex.cli.options import db_option
from zotindex.core.library import LibraryIndex
from zotindex.db.schema import INDEX_VERSION

console = Console()


@click.command("status")
@db_option
def status(db_path: Path | None) -> None:
    """Show the index version, record counts, and last sync time."""
    library = LibraryIndex(index_path=db_path)
    stats = library.stats()

    if stats is None:
        console.print(f"[red]No usable index at {library.index_path}.[/red]")
        console.print("Run `zotindex setup` first.")
        raise SystemExit(1)

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=14)
    table.add_column("Value")

    version = stats["version"]
    version_display = str(version)
    if version != INDEX_VERSION:
        version_display += f" [yellow](current is {INDEX_VERSION})[/yellow]"

    table.add_row("Index", str(library.index_path))
    table.add_row("Version", version_display)
    table.add_row("Documents", str(stats["documents"]))
    table.add_row("Payloads", str(stats["payloads"]))
    table.add_row("Last sync", stats["last_modified"] or "never")
    table.add_row("Horizon", stats["horizon"] or "-")

    console.print(table)
