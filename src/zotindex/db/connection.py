# ABOUTME: SQLite connection management and schema versioning for the zotindex search index.
# ABOUTME: Opens the index, and creates or rebuilds its tables when the stored version differs.

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from zotindex.db.schema import CREATE_STATEMENTS, DROP_STATEMENTS, INDEX_VERSION

logger = logging.getLogger(__name__)

DEFAULT_INDEX_PATH = Path.home() / ".zotindex" / "index.db"

_BUSY_TIMEOUT_MS = 5000


class IndexConnectionError(ConnectionError):
    """Raised when the index database cannot be opened or its schema set up."""


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block inside an explicit transaction.

    Commits on success. On any exception the transaction is rolled back
    and the exception re-raised, so no partial write is ever visible.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def _schema_exists(conn: sqlite3.Connection) -> bool:
    """Check if the version table has been created."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    return cursor.fetchone() is not None


def get_index_version(conn: sqlite3.Connection) -> int | None:
    """Read the stored index version, or None if the index has no version table."""
    if not _schema_exists(conn):
        return None
    cursor = conn.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
    row = cursor.fetchone()
    return row[0] if row else None


def _rebuild(conn: sqlite3.Connection) -> None:
    """Drop every index table and recreate the current schema, atomically."""
    with transaction(conn):
        for statement in DROP_STATEMENTS:
            conn.execute(statement)
        for statement in CREATE_STATEMENTS:
            conn.execute(statement)


def ensure_schema(conn: sqlite3.Connection) -> bool:
    """Create the index schema, or rebuild it if its version is outdated.

    Args:
        conn: A writable connection from open_index().

    Returns:
        True if the tables were (re)created and the index is empty and
        needs a full sync; False if the existing schema is current.

    Raises:
        IndexConnectionError: If the schema could not be read or written.
            The transaction is rolled back first.
    """
    try:
        version = get_index_version(conn)
        if version == INDEX_VERSION:
            return False

        if version is None:
            logger.info("Creating search index tables (version %d)", INDEX_VERSION)
        else:
            logger.warning(
                "Index version %s is outdated (current is %d), rebuilding",
                version,
                INDEX_VERSION,
            )
        _rebuild(conn)
    except sqlite3.Error as exc:
        raise IndexConnectionError(f"Failed to set up index schema: {exc}") from exc

    return True


def open_index(path: Path | None = None, *, read_only: bool = False) -> sqlite3.Connection:
    """Open the zotindex search index database.

    Writable connections create the file and its parent directories if
    needed and switch the database to WAL mode, so readers can keep
    searching while an update is in flight. Connections run in autocommit
    mode; writes are grouped with transaction(). Read-only connections
    never create the file.

    Args:
        path: Path to the index file. Defaults to ~/.zotindex/index.db.
        read_only: Open with a read-only URI for searching.

    Returns:
        A configured sqlite3.Connection with sqlite3.Row factory.

    Raises:
        IndexConnectionError: If the database cannot be opened.
    """
    db_path = path or DEFAULT_INDEX_PATH

    try:
        if read_only:
            conn = sqlite3.connect(
                f"{db_path.resolve().as_uri()}?mode=ro",
                uri=True,
                isolation_level=None,
            )
        else:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(db_path), isolation_level=None)
    except (OSError, sqlite3.Error) as exc:
        raise IndexConnectionError(f"Failed to open index {db_path}: {exc}") from exc

    conn.row_factory = sqlite3.Row
    try:
        conn.execute(f"PRAGMA busy_timeout={_BUSY_TIMEOUT_MS}")
        if not read_only:
            conn.execute("PRAGMA journal_mode=WAL")
    except sqlite3.Error as exc:
        conn.close()
        raise IndexConnectionError(f"Failed to configure index {db_path}: {exc}") from exc

    return conn
