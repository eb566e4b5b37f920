# ABOUTME: Source package: read-only access to a Zotero library database.
# ABOUTME: Exports the snapshot reader and the LibraryRecord data types.

from zotindex.source.reader import (
    DEFAULT_ZOTERO_PATH,
    SourceConnectionError,
    SourceQueryError,
    SourceReader,
    ValidIdentifiers,
)
from zotindex.source.types import Attachment, Creator, LibraryRecord

__all__ = [
    "DEFAULT_ZOTERO_PATH",
    "Attachment",
    "Creator",
    "LibraryRecord",
    "SourceConnectionError",
    "SourceQueryError",
    "SourceReader",
    "ValidIdentifiers",
]
