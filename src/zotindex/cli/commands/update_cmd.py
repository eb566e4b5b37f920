# ABOUTME: The `zotindex update` command for syncing the index with Zotero.
# ABOUTME: Runs an incremental sync, or a full one with --force.

from pathlib import Path

import click
from rich.console import Console

from zotindex.cli.commands._summary import print_sync_result
from zotindex.cli.options import db_option, zotero_option
from zotindex.core.library import LibraryIndex

console = Console()


@click.command("update")
@db_option
@zotero_option
@click.option(
    "-f",
    "--force",
    is_flag=True,
    default=False,
    help="Re-index every record, even if Zotero looks unchanged.",
)
def update(db_path: Path | None, zotero_path: Path | None, force: bool) -> None:
    """Sync the search index with the Zotero library."""
    library = LibraryIndex(db_path, zotero_path)
    result = library.update(force=force)
    print_sync_result(console, result)
    if result.failed:
        raise SystemExit(1)
