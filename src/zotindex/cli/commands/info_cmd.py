# ABOUTME: The `zotindex info` command for displaying one indexed record in full.
# ABOUTME: Shows metadata, creators, tags, attachments, and the zotero:// link to open it.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from zotindex.cli.options import db_option
from zotindex.core.library import LibraryIndex
from zotindex.source.types import LibraryRecord

console = Console()


def zotero_link(record: LibraryRecord) -> str:
    """URL that opens the record's PDF in Zotero, or selects the record itself."""
    pdf = record.pdf_attachment
    if pdf is not None:
        return f"zotero://open-pdf/library/items/{pdf.key}"
    return f"zotero://select/library/items/{record.key}"


@click.command("info")
@click.argument("key")
@db_option
def info(key: str, db_path: Path | None) -> None:
    """Show every stored field of a record by its Zotero key."""
    record = LibraryIndex(index_path=db_path).get(key)

    if record is None:
        console.print(f"[red]Record {key} not found.[/red]")
        raise SystemExit(1)

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=14)
    table.add_column("Value")

    table.add_row("Key", record.key)
    table.add_row("Type", record.item_type)
    table.add_row("Title", record.title or "untitled")
    if record.year:
        table.add_row("Year", record.year)
    for creator in record.creators:
        table.add_row(creator.role.capitalize() or "Creator", creator.name)
    if record.publisher:
        table.add_row("Publisher", record.publisher)
    if record.doi:
        table.add_row("DOI", record.doi)
    if record.collections:
        table.add_row("Collections", ", ".join(record.collections))
    if record.tags:
        table.add_row("Tags", ", ".join(record.tags))
    for attachment in record.attachments:
        table.add_row("Attachment", attachment.title or attachment.path or attachment.key)
    if record.abstract:
        table.add_row("Abstract", record.abstract)
    table.add_row("Notes", str(len(record.notes)))
    table.add_row("Modified", record.modified)
    table.add_row("Open", zotero_link(record))

    console.print(table)
