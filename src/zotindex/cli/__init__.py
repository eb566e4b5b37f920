# ABOUTME: CLI package for zotindex, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from zotindex.cli.commands import info_cmd, search_cmd, setup_cmd, status_cmd, update_cmd


def _configure_logging(verbose: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(package_name="zotindex")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """zotindex - full-text search over a Zotero library."""
    _configure_logging(verbose)


cli.add_command(setup_cmd.setup)
cli.add_command(update_cmd.update)
cli.add_command(search_cmd.search)
cli.add_command(info_cmd.info)
cli.add_command(status_cmd.status)
