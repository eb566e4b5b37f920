# ABOUTME: Public API for the zotindex search index database layer.
# ABOUTME: Exports connection management, schema setup, index operations, and error types.

from zotindex.db.connection import (
    DEFAULT_INDEX_PATH,
    IndexConnectionError,
    ensure_schema,
    open_index,
)
from zotindex.db.index import ConsistencyFault, QueryError, SearchIndex, quote_query
from zotindex.db.mapping import IndexedDocument, SerializationError

__all__ = [
    "DEFAULT_INDEX_PATH",
    "ConsistencyFault",
    "IndexConnectionError",
    "IndexedDocument",
    "QueryError",
    "SearchIndex",
    "SerializationError",
    "ensure_schema",
    "open_index",
    "quote_query",
]
