# ABOUTME: Shared Click options for zotindex CLI commands.
# ABOUTME: Provides reusable decorators for the index and Zotero database paths.

from pathlib import Path

import click

from zotindex.db.connection import DEFAULT_INDEX_PATH
from zotindex.source.reader import DEFAULT_ZOTERO_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    envvar="ZOTINDEX_DB",
    help=f"Path to the search index (default: {DEFAULT_INDEX_PATH})",
)

zotero_option = click.option(
    "--zotero",
    "zotero_path",
    type=click.Path(path_type=Path),
    default=None,
    envvar="ZOTINDEX_ZOTERO",
    help=f"Path to zotero.sqlite (default: {DEFAULT_ZOTERO_PATH})",
)
