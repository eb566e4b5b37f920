# ABOUTME: Snapshot reader for a live Zotero library database.
# ABOUTME: Copies the store aside, then yields LibraryRecords and the set of valid item IDs.

import html
import logging
import re
import shutil
import sqlite3
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from zotindex.source import queries
from zotindex.source.types import Attachment, Creator, LibraryRecord

logger = logging.getLogger(__name__)

DEFAULT_ZOTERO_PATH = Path.home() / "Zotero" / "zotero.sqlite"

_SNAPSHOT_NAME = "zotero.sqlite"
_SIDECAR_SUFFIXES = ("-wal",)

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


class SourceConnectionError(ConnectionError):
    """Raised when the Zotero database cannot be copied or opened."""


class SourceQueryError(Exception):
    """Raised when the item listing or horizon query against the snapshot fails."""


@dataclass(frozen=True)
class ValidIdentifiers:
    """Result of a valid-ID lookup.

    ``ok`` distinguishes a library that really is empty from a lookup
    that failed; callers must not sweep the index unless ``ok`` is True.
    """

    ok: bool
    ids: frozenset[int] = field(default_factory=frozenset)


def _text(value: object) -> str:
    """Column value as a string; Zotero value columns have no type affinity."""
    if value is None:
        return ""
    return str(value)


def clean_note(note: str) -> str:
    """Strip HTML markup from a Zotero note and collapse whitespace."""
    text = html.unescape(_HTML_TAG_RE.sub(" ", note))
    return _WHITESPACE_RE.sub(" ", text).strip()


class SourceReader:
    """Reads a point-in-time snapshot of a Zotero library.

    Zotero keeps its database locked while running, so the reader copies
    the file (and its WAL sidecar, if any) into a private temporary
    directory and queries the copy. The live store is only touched for
    the duration of that copy.

    Use as a context manager so the snapshot is always cleaned up::

        with SourceReader(path) as reader:
            for record in reader.records():
                ...
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._tmpdir: Path | None = None
        self._conn: sqlite3.Connection | None = None
        self.snapshot_time = datetime.now(UTC)
        self._open()

    @classmethod
    def open(cls, path: Path) -> "SourceReader":
        """Snapshot and open the Zotero database at ``path``.

        Raises:
            SourceConnectionError: If the file is missing, cannot be copied,
                or is not a readable Zotero database.
        """
        return cls(path)

    def _open(self) -> None:
        if not self._path.is_file():
            raise SourceConnectionError(f"Zotero database not found: {self._path}")

        self._tmpdir = Path(tempfile.mkdtemp(prefix="zotindex-"))
        snapshot = self._tmpdir / _SNAPSHOT_NAME
        try:
            shutil.copy2(self._path, snapshot)
            for suffix in _SIDECAR_SUFFIXES:
                sidecar = self._path.with_name(self._path.name + suffix)
                if sidecar.exists():
                    shutil.copy2(sidecar, snapshot.with_name(snapshot.name + suffix))

            conn = sqlite3.connect(str(snapshot))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA query_only = ON")
            conn.execute("SELECT 1 FROM items LIMIT 1").fetchall()
        except (OSError, sqlite3.Error) as exc:
            self.close()
            raise SourceConnectionError(
                f"Failed to open Zotero database {self._path}: {exc}"
            ) from exc

        self._conn = conn
        logger.debug("Opened snapshot of %s at %s", self._path, snapshot)

    def close(self) -> None:
        """Close the snapshot connection and delete the temporary copy."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self._tmpdir is not None:
            shutil.rmtree(self._tmpdir, ignore_errors=True)
            self._tmpdir = None

    def __enter__(self) -> "SourceReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def snapshot_path(self) -> Path | None:
        """Location of the private copy, or None once closed."""
        if self._tmpdir is None:
            return None
        return self._tmpdir / _SNAPSHOT_NAME

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise SourceConnectionError("Zotero snapshot is closed")
        return self._conn

    def last_modified(self) -> datetime:
        """Modification time of the live store, including its WAL sidecar."""
        return source_last_modified(self._path)

    def horizon(self) -> str | None:
        """The newest item modification timestamp in the snapshot."""
        try:
            row = self.conn.execute(queries.SELECT_HORIZON).fetchone()
        except sqlite3.Error as exc:
            raise SourceQueryError(f"Failed to read modification horizon: {exc}") from exc
        if row is None or row["horizon"] is None:
            return None
        return _text(row["horizon"])

    def records(self, since: str | None = None) -> Iterator[LibraryRecord]:
        """Yield the library's top-level records, one at a time.

        Args:
            since: Zotero ``dateModified`` timestamp ("YYYY-MM-DD HH:MM:SS").
                When given, only records modified strictly after it are
                yielded. When omitted, every valid record is yielded.

        Raises:
            SourceQueryError: If the item listing itself fails, including
                while stepping through its rows. Failures while reading one
                item's child rows skip that item only.
        """
        try:
            if since is None:
                cursor = self.conn.execute(queries.SELECT_ITEMS + queries.ORDER_ITEMS)
            else:
                cursor = self.conn.execute(
                    queries.SELECT_ITEMS_SINCE + queries.ORDER_ITEMS, (since,)
                )
        except sqlite3.Error as exc:
            raise SourceQueryError(f"Failed to query items: {exc}") from exc

        while True:
            try:
                row = cursor.fetchone()
            except sqlite3.Error as exc:
                raise SourceQueryError(f"Failed to read item listing: {exc}") from exc
            if row is None:
                return
            try:
                record = self._build_record(row)
            except sqlite3.Error as exc:
                logger.warning("Skipping item %s (%s): %s", row["id"], row["key"], exc)
                continue
            yield record

    def valid_identifiers(self) -> ValidIdentifiers:
        """Return the IDs of every non-deleted top-level item.

        Never raises; a failed lookup is reported with ``ok=False``.
        """
        try:
            rows = self.conn.execute(queries.SELECT_VALID_IDS).fetchall()
        except (sqlite3.Error, SourceConnectionError) as exc:
            logger.warning("Failed to read valid item IDs: %s", exc)
            return ValidIdentifiers(ok=False)
        return ValidIdentifiers(ok=True, ids=frozenset(row["id"] for row in rows))

    def _build_record(self, row: sqlite3.Row) -> LibraryRecord:
        item_id = row["id"]
        conn = self.conn

        meta = {
            _text(r["name"]): _text(r["value"])
            for r in conn.execute(queries.SELECT_METADATA, (item_id,))
            if r["name"] is not None and r["value"] is not None
        }
        creators = [
            Creator(
                given=_text(r["given"]),
                family=_text(r["family"]),
                role=_text(r["role"]),
                index=r["index"] or 0,
            )
            for r in conn.execute(queries.SELECT_CREATORS, (item_id,))
        ]
        attachments = [
            Attachment(
                key=_text(r["key"]),
                path=_text(r["path"]),
                title=_text(r["title"]),
                url=_text(r["url"]),
                content_type=_text(r["content_type"]),
            )
            for r in conn.execute(queries.SELECT_ATTACHMENTS, (item_id,))
        ]
        collections = [
            _text(r["name"]) for r in conn.execute(queries.SELECT_COLLECTIONS, (item_id,))
        ]
        tags = [_text(r["name"]) for r in conn.execute(queries.SELECT_TAGS, (item_id,))]
        notes = [
            cleaned
            for r in conn.execute(queries.SELECT_NOTES, (item_id,))
            if (cleaned := clean_note(_text(r["note"])))
        ]

        return LibraryRecord(
            id=item_id,
            key=_text(row["key"]),
            modified=_text(row["modified"]),
            item_type=_text(row["item_type"]),
            library_id=row["library_id"] or 1,
            meta=meta,
            creators=creators,
            collections=collections,
            tags=tags,
            notes=notes,
            attachments=attachments,
        )


def source_last_modified(path: Path) -> datetime:
    """Return the newest mtime of a SQLite file and its WAL sidecar, in UTC.

    Raises:
        SourceConnectionError: If the database file does not exist.
    """
    try:
        mtime = Path(path).stat().st_mtime
    except OSError as exc:
        raise SourceConnectionError(f"Zotero database not found: {path}") from exc
    wal = Path(path).with_name(Path(path).name + "-wal")
    if wal.exists():
        mtime = max(mtime, wal.stat().st_mtime)
    return datetime.fromtimestamp(mtime, UTC)
