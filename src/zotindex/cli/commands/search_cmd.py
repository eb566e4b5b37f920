# ABOUTME: The `zotindex search` command for ranked full-text search of the library.
# ABOUTME: Matches titles, creators, tags, notes, and abstracts, best results first.

import json as json_lib
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from zotindex.cli.options import db_option
from zotindex.core.library import LibraryIndex
from zotindex.source.types import LibraryRecord

console = Console()

MIN_QUERY_LENGTH = 3


@click.command("search")
@click.argument("query")
@db_option
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    default=False,
    help="Output results as JSON.",
)
def search(query: str, db_path: Path | None, json_output: bool) -> None:
    """Search the index by title, creator, tag, note, or abstract."""
    if len(query.strip()) < MIN_QUERY_LENGTH:
        console.print(f"[yellow]Query must be at least {MIN_QUERY_LENGTH} characters.[/yellow]")
        raise SystemExit(2)

    library = LibraryIndex(index_path=db_path)
    results = library.search(query)

    if json_output:
        _print_json(results)
        return

    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return

    best = results[0][1] or 1.0

    table = Table()
    table.add_column("Key", style="dim", no_wrap=True, min_width=8)
    table.add_column("Title", style="bold")
    table.add_column("Creators")
    table.add_column("Year", width=4, no_wrap=True)
    table.add_column("Rel.", justify="right", no_wrap=True)

    for record, score in results:
        table.add_row(
            record.key,
            record.title or "[dim]untitled[/dim]",
            record.author_summary or "[dim]unknown[/dim]",
            record.year,
            f"{score / best:.2f}",
        )

    console.print(table)
    console.print(f"\n[dim]{len(results)} result(s)[/dim]")


def _record_summary(record: LibraryRecord, score: float) -> dict:
    pdf = record.pdf_attachment
    return {
        "key": record.key,
        "title": record.title,
        "creators": record.author_summary,
        "year": record.year,
        "type": record.item_type,
        "pdf": pdf.key if pdf else None,
        "score": score,
    }


def _print_json(results: list[tuple[LibraryRecord, float]]) -> None:
    """Print search results as JSON."""
    data = [_record_summary(record, score) for record, score in results]
    click.echo(json_lib.dumps(data, indent=2))
