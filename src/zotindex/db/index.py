# ABOUTME: Read and write operations on the zotindex search index.
# ABOUTME: Per-record upserts, the tombstone sweep, and bm25-ranked full-text search.

import json
import logging
import sqlite3
from typing import Any

from zotindex.db.connection import get_index_version, transaction
from zotindex.db.mapping import (
    SerializationError,
    payload_to_record,
    record_to_document,
    record_to_payload,
)
from zotindex.db.schema import DOCUMENT_COLUMNS
from zotindex.source.types import LibraryRecord

logger = logging.getLogger(__name__)

RESULT_LIMIT = 10

_COLUMNS = ", ".join(name for name, _ in DOCUMENT_COLUMNS)
_PLACEHOLDERS = ", ".join("?" for _ in DOCUMENT_COLUMNS)
_WEIGHTS = ", ".join(f"{weight:.1f}" for _, weight in DOCUMENT_COLUMNS)

_INSERT_DOCUMENT = f"INSERT INTO documents (rowid, {_COLUMNS}) VALUES (?, {_PLACEHOLDERS})"
_SEARCH = (
    f"SELECT rowid AS id, key, bm25(documents, {_WEIGHTS}) AS score "
    "FROM documents WHERE documents MATCH ? "
    "ORDER BY score LIMIT ?"
)

STATE_LAST_MODIFIED = "last_modified"
STATE_HORIZON = "horizon"


class QueryError(Exception):
    """Raised when a single statement against the index fails."""


class ConsistencyFault(Exception):
    """Raised when the document and payload tables disagree about a record."""


def quote_query(text: str) -> str:
    """Turn free text into a single FTS5 phrase.

    Embedded double quotes are doubled and the whole text is wrapped in
    quotes, so operators like AND, NEAR, or column filters in user input
    are matched as plain words instead of being interpreted.
    """
    return '"' + text.replace('"', '""') + '"'


class SearchIndex:
    """Wraps a sqlite3 connection to the index and provides typed access.

    A writable connection is needed for upsert(), delete_missing() and
    set_state(); search and lookups work on read-only connections.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # --- Writes ---

    def upsert(self, record: LibraryRecord) -> None:
        """Insert or replace one record's document and payload atomically.

        Raises:
            SerializationError: If the record cannot be encoded. Nothing
                is written.
            QueryError: If either write fails. The record's transaction is
                rolled back, leaving its previous state in place.
        """
        document = record_to_document(record)
        payload = record_to_payload(record)

        try:
            with transaction(self._conn):
                self._conn.execute("DELETE FROM documents WHERE rowid = ?", (record.id,))
                self._conn.execute(_INSERT_DOCUMENT, (record.id, *document.columns()))
                self._conn.execute(
                    "INSERT OR REPLACE INTO payloads (id, key, obj) VALUES (?, ?, ?)",
                    (record.id, record.key, payload),
                )
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to index item {record.id} ({record.key}): {exc}") from exc

    def delete_missing(self, valid_ids: frozenset[int] | set[int]) -> int:
        """Delete every record whose ID is not in ``valid_ids``.

        Runs one DELETE per table inside a single transaction.

        Returns:
            The number of records removed.

        Raises:
            QueryError: If the sweep fails; nothing is deleted.
        """
        ids_json = json.dumps(sorted(valid_ids))
        try:
            with transaction(self._conn):
                self._conn.execute(
                    "DELETE FROM documents "
                    "WHERE rowid NOT IN (SELECT value FROM json_each(?))",
                    (ids_json,),
                )
                cursor = self._conn.execute(
                    "DELETE FROM payloads WHERE id NOT IN (SELECT value FROM json_each(?))",
                    (ids_json,),
                )
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to delete stale records: {exc}") from exc
        return cursor.rowcount

    def set_state(self, name: str, value: str) -> None:
        """Record a sync-state value such as the last-modified timestamp."""
        try:
            with transaction(self._conn):
                self._conn.execute(
                    "INSERT OR REPLACE INTO sync_state (name, value) VALUES (?, ?)",
                    (name, value),
                )
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to store sync state {name}: {exc}") from exc

    # --- Reads ---

    def get_state(self, name: str) -> str | None:
        """Read a sync-state value, or None if it was never written."""
        try:
            cursor = self._conn.execute("SELECT value FROM sync_state WHERE name = ?", (name,))
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to read sync state {name}: {exc}") from exc
        row = cursor.fetchone()
        return row["value"] if row else None

    def search(self, text: str, limit: int = RESULT_LIMIT) -> list[tuple[LibraryRecord, float]]:
        """Full-text search across every indexed field, best matches first.

        The text is always matched as a literal phrase (see quote_query).
        Scores are bm25 relevance with per-column weights, negated so that
        higher is better.

        Args:
            text: Free-text query.
            limit: Maximum number of results.

        Returns:
            (record, score) pairs. Matches whose payload is missing or
            unreadable are logged and left out.

        Raises:
            QueryError: If the ranked query fails.
        """
        if not text.strip():
            return []

        try:
            rows = self._conn.execute(_SEARCH, (quote_query(text), limit)).fetchall()
        except sqlite3.Error as exc:
            raise QueryError(f"Search failed for {text!r}: {exc}") from exc

        results: list[tuple[LibraryRecord, float]] = []
        for row in rows:
            try:
                record = self.get_payload(row["id"])
            except ConsistencyFault as exc:
                logger.warning("%s", exc)
                continue
            except (SerializationError, QueryError) as exc:
                logger.warning("Skipping match %s (%s): %s", row["id"], row["key"], exc)
                continue
            results.append((record, -row["score"]))
        return results

    def get_payload(self, item_id: int) -> LibraryRecord:
        """Load the full record stored for an item ID.

        Raises:
            ConsistencyFault: If no payload row exists for the ID.
            SerializationError: If the payload cannot be decoded.
            QueryError: If the lookup fails.
        """
        try:
            cursor = self._conn.execute("SELECT obj FROM payloads WHERE id = ?", (item_id,))
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to read payload for item {item_id}: {exc}") from exc
        row = cursor.fetchone()
        if row is None:
            raise ConsistencyFault(f"Item {item_id} is indexed but has no stored payload")
        return payload_to_record(row["obj"])

    def get_by_key(self, key: str) -> LibraryRecord | None:
        """Retrieve a record by its Zotero key."""
        try:
            cursor = self._conn.execute("SELECT obj FROM payloads WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to look up {key}: {exc}") from exc
        row = cursor.fetchone()
        return payload_to_record(row["obj"]) if row else None

    def document_ids(self) -> set[int]:
        """IDs present in the documents table."""
        return {row[0] for row in self._conn.execute("SELECT rowid FROM documents")}

    def payload_ids(self) -> set[int]:
        """IDs present in the payloads table."""
        return {row[0] for row in self._conn.execute("SELECT id FROM payloads")}

    def stats(self) -> dict[str, Any]:
        """Summarize the index: version, row counts, and sync state."""
        try:
            documents = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
            payloads = self._conn.execute("SELECT COUNT(*) FROM payloads").fetchone()[0]
            return {
                "version": get_index_version(self._conn),
                "documents": documents,
                "payloads": payloads,
                STATE_LAST_MODIFIED: self.get_state(STATE_LAST_MODIFIED),
                STATE_HORIZON: self.get_state(STATE_HORIZON),
            }
        except sqlite3.Error as exc:
            raise QueryError(f"Failed to read index stats: {exc}") from exc
