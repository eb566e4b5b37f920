# ABOUTME: LibraryIndex, the entry point hosts use to set up, update, and search the index.
# ABOUTME: Turns every storage or source failure into a status value instead of an exception.

import logging
import threading
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Any

from zotindex.core.sync import StopFn, SyncResult, sync_library
from zotindex.db.connection import (
    DEFAULT_INDEX_PATH,
    IndexConnectionError,
    ensure_schema,
    open_index,
)
from zotindex.db.index import (
    STATE_HORIZON,
    STATE_LAST_MODIFIED,
    QueryError,
    SearchIndex,
)
from zotindex.db.mapping import SerializationError
from zotindex.source.reader import (
    DEFAULT_ZOTERO_PATH,
    SourceConnectionError,
    SourceQueryError,
    SourceReader,
    source_last_modified,
)
from zotindex.source.types import LibraryRecord

logger = logging.getLogger(__name__)


class LibraryIndex:
    """A search index mirrored from one Zotero library.

    Exposes the three operations a host needs: setup(), update() and
    search(). Each call opens its own connection and closes it on exit.
    Updates are serialized; searches use separate read-only connections
    and may run alongside an update, seeing each record either before or
    after its write.
    """

    def __init__(self, index_path: Path | None = None, zotero_path: Path | None = None) -> None:
        self.index_path = index_path or DEFAULT_INDEX_PATH
        self.zotero_path = zotero_path or DEFAULT_ZOTERO_PATH
        self._lock = threading.Lock()
        self._ready = False
        self._needs_full_sync = False

    def setup(self) -> bool:
        """Create the index, or rebuild it if its format version is outdated.

        Returns:
            True if the tables were newly built and the next update will be
            a full sync. False if the index was already current or could
            not be opened (the failure is logged).
        """
        try:
            with closing(open_index(self.index_path)) as conn:
                built = ensure_schema(conn)
        except IndexConnectionError as exc:
            logger.error("Index setup failed: %s", exc)
            return False

        self._ready = True
        if built:
            self._needs_full_sync = True
        return built

    def update(self, force: bool = False, *, should_stop: StopFn | None = None) -> SyncResult:
        """Bring the index up to date with the Zotero library.

        Without ``force``, returns immediately if the Zotero file hasn't
        changed since the last sync, and otherwise only pulls records
        modified after the last sync horizon. A freshly built index is
        always fully synced.

        Returns:
            SyncResult describing the pass. ``failed`` is set when the
            source or index could not be opened; nothing is raised.
        """
        with self._lock:
            if not self._ready:
                self.setup()
                if not self._ready:
                    return SyncResult(failed=True)

            force = force or self._needs_full_sync
            try:
                return self._update(force, should_stop)
            except (
                SourceConnectionError,
                SourceQueryError,
                IndexConnectionError,
                QueryError,
            ) as exc:
                logger.error("Index update failed: %s", exc)
                return SyncResult(failed=True, error_details=[("<update>", str(exc))])

    def _update(self, force: bool, should_stop: StopFn | None) -> SyncResult:
        with closing(open_index(self.index_path)) as conn:
            index = SearchIndex(conn)

            if not force and not self._is_stale(index):
                logger.debug("Index is up to date")
                return SyncResult(skipped=True)

            since = None if force else index.get_state(STATE_HORIZON)
            logger.info("Updating index (%s)", "full" if since is None else f"since {since}")

            with SourceReader.open(self.zotero_path) as reader:
                horizon = reader.horizon()
                result = sync_library(reader, index, since=since, should_stop=should_stop)
                if result.cancelled:
                    return result

                # Failed records are retried on the next pass from the old horizon.
                if result.errors == 0:
                    index.set_state(STATE_LAST_MODIFIED, reader.snapshot_time.isoformat())
                    if horizon is not None:
                        index.set_state(STATE_HORIZON, horizon)
                self._needs_full_sync = False

        logger.info(
            "Index updated: %d record(s) written, %d deleted, %d error(s)",
            result.updated,
            result.deleted,
            result.errors,
        )
        return result

    def _is_stale(self, index: SearchIndex) -> bool:
        """Whether the Zotero file changed after the index last synced."""
        recorded = index.get_state(STATE_LAST_MODIFIED)
        if recorded is None:
            return True
        return source_last_modified(self.zotero_path) > datetime.fromisoformat(recorded)

    def search(self, text: str) -> list[tuple[LibraryRecord, float]]:
        """Ranked full-text search, best match first.

        Returns:
            Up to ten (record, score) pairs. Empty if the index cannot be
            opened or the query fails (the failure is logged).
        """
        try:
            with closing(open_index(self.index_path, read_only=True)) as conn:
                return SearchIndex(conn).search(text)
        except (IndexConnectionError, QueryError) as exc:
            logger.error("Search failed: %s", exc)
            return []

    def get(self, key: str) -> LibraryRecord | None:
        """Look up one indexed record by Zotero key, or None."""
        try:
            with closing(open_index(self.index_path, read_only=True)) as conn:
                return SearchIndex(conn).get_by_key(key)
        except (IndexConnectionError, QueryError, SerializationError) as exc:
            logger.error("Lookup of %s failed: %s", key, exc)
            return None

    def stats(self) -> dict[str, Any] | None:
        """Index version, row counts, and sync state, or None if unavailable."""
        try:
            with closing(open_index(self.index_path, read_only=True)) as conn:
                return SearchIndex(conn).stats()
        except (IndexConnectionError, QueryError) as exc:
            logger.error("Cannot read index stats: %s", exc)
            return None
