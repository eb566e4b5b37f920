# ABOUTME: The `zotindex setup` command for creating or rebuilding the search index.
# ABOUTME: Builds the tables when missing or outdated, then runs a full sync.

from pathlib import Path

import click
from rich.console import Console

from zotindex.cli.commands._summary import print_sync_result
from zotindex.cli.options import db_option, zotero_option
from zotindex.core.library import LibraryIndex

console = Console()


@click.command("setup")
@db_option
@zotero_option
def setup(db_path: Path | None, zotero_path: Path | None) -> None:
    """Create the search index, rebuilding it if its format is outdated."""
    library = LibraryIndex(db_path, zotero_path)

    if not library.setup():
        stats = library.stats()
        if stats is None:
            console.print("[red]Could not open the search index.[/red]")
            raise SystemExit(1)
        console.print("[green]Index already exists and is current.[/green]")
        return

    console.print(f"[bold]Built search index at {library.index_path}[/bold]")
    result = library.update(force=True)
    print_sync_result(console, result)
    if result.failed:
        raise SystemExit(1)
