# ABOUTME: Sync pipeline that mirrors Zotero records into the search index.
# ABOUTME: Upserts changed records one transaction at a time, then sweeps deleted ones.

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from zotindex.db.index import QueryError, SearchIndex
from zotindex.db.mapping import SerializationError
from zotindex.source.reader import SourceReader

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Summary of a sync pass."""

    updated: int = 0
    errors: int = 0
    deleted: int = 0
    swept: bool = False
    skipped: bool = False
    cancelled: bool = False
    failed: bool = False
    error_details: list[tuple[str, str]] = field(default_factory=list)


# Polled between records; returning True stops the pass early.
StopFn = Callable[[], bool]


def sync_library(
    reader: SourceReader,
    index: SearchIndex,
    *,
    since: str | None = None,
    should_stop: StopFn | None = None,
) -> SyncResult:
    """Copy changed records from a Zotero snapshot into the search index.

    Each record is written in its own transaction. A record that fails to
    encode or write is logged, counted, and skipped; the pass goes on.
    After the loop, index rows whose IDs are no longer valid in the source
    are deleted, unless the valid-ID lookup failed or came back empty.

    Args:
        reader: Open snapshot of the Zotero library.
        index: Index wrapping a writable connection.
        since: Only sync records modified after this Zotero timestamp.
            None syncs every record.
        should_stop: Optional callback checked before each record.

    Returns:
        SyncResult with counts of updated, errored, and deleted records.
    """
    result = SyncResult()

    for record in reader.records(since):
        if should_stop is not None and should_stop():
            logger.info("Sync cancelled after %d record(s)", result.updated)
            result.cancelled = True
            return result

        try:
            index.upsert(record)
        except (QueryError, SerializationError) as exc:
            logger.warning("Skipping %s: %s", record.key, exc)
            result.errors += 1
            result.error_details.append((record.key, str(exc)))
            continue

        result.updated += 1
        logger.debug("Indexed item %d (%s)", record.id, record.key)

    valid = reader.valid_identifiers()
    if not valid.ok or not valid.ids:
        logger.warning(
            "Valid item IDs unavailable or Zotero library empty; skipping deletion sweep"
        )
        return result

    try:
        result.deleted = index.delete_missing(valid.ids)
        result.swept = True
    except QueryError as exc:
        logger.warning("%s", exc)
        result.error_details.append(("<sweep>", str(exc)))
    else:
        logger.info("Deleted %d stale record(s)", result.deleted)

    return result
