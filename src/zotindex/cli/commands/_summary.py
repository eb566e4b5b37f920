# ABOUTME: Rich rendering of a sync pass summary, shared by the setup and update commands.
# ABOUTME: Prints counts of written, deleted, and failed records.

from rich.console import Console

from zotindex.core.sync import SyncResult


def print_sync_result(console: Console, result: SyncResult) -> None:
    """Print a one-screen summary of a sync pass."""
    if result.failed:
        console.print("[red]Update failed.[/red] Run with --verbose for details.")
        return
    if result.skipped:
        console.print("[green]Index is up to date.[/green]")
        return

    console.print(f"[bold green]{result.updated} record(s) indexed.[/bold green]")
    if result.swept:
        console.print(f"[dim]{result.deleted} stale record(s) removed.[/dim]")
    else:
        console.print("[yellow]Deletion sweep skipped.[/yellow]")
    if result.cancelled:
        console.print("[yellow]Update was cancelled before finishing.[/yellow]")
    if result.errors:
        console.print(f"[red]{result.errors} record(s) could not be indexed:[/red]")
        for key, error in result.error_details:
            console.print(f"  {key}: {error}")
