# ABOUTME: Converts LibraryRecords into denormalized search documents and JSON payloads.
# ABOUTME: Handles the flattening of creators, tags, collections, and notes into indexable text.

import json
from collections.abc import Callable, Iterable
from dataclasses import asdict, astuple, dataclass, fields
from typing import Any, TypeVar

from zotindex.source.types import Attachment, Creator, LibraryRecord

T = TypeVar("T")


class SerializationError(Exception):
    """Raised when a record cannot be encoded to or decoded from a payload."""


@dataclass
class IndexedDocument:
    """The flattened, full-text-searchable projection of a LibraryRecord.

    Field order matches the documents table columns after ``id``.
    """

    id: int
    key: str
    title: str = ""
    short_title: str = ""
    doi: str = ""
    year: str = ""
    creators: str = ""
    authors: str = ""
    editors: str = ""
    tags: str = ""
    collections: str = ""
    attachments: str = ""
    notes: str = ""
    abstract: str = ""
    publisher: str = ""

    def columns(self) -> tuple[str, ...]:
        """Column values in table order, excluding the rowid."""
        return astuple(self)[1:]


def join_mapped(items: Iterable[T], mapper: Callable[[T], str], separator: str = " ") -> str:
    """Map each item to text and join the non-empty results."""
    return separator.join(text for text in map(mapper, items) if text)


def _family(creator: Creator) -> str:
    return creator.family


def record_to_document(record: LibraryRecord) -> IndexedDocument:
    """Flatten a LibraryRecord into the text columns stored for matching.

    Raises:
        SerializationError: If a field holds a value that cannot be
            rendered as text.
    """
    try:
        return _flatten(record)
    except (TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"Cannot flatten record {record.key}: {exc}") from exc


def _flatten(record: LibraryRecord) -> IndexedDocument:
    return IndexedDocument(
        id=record.id,
        key=record.key,
        title=record.title,
        short_title=record.short_title,
        doi=record.doi,
        year=record.year,
        creators=join_mapped(record.creators, _family),
        authors=join_mapped(record.authors, _family),
        editors=join_mapped(record.editors, _family),
        tags=join_mapped(record.tags, str),
        collections=join_mapped(record.collections, str),
        attachments=join_mapped(record.attachments, lambda a: a.title),
        notes=join_mapped(record.notes, str),
        abstract=record.abstract,
        publisher=record.publisher,
    )


def record_to_payload(record: LibraryRecord) -> str:
    """Serialize a LibraryRecord to a deterministic JSON string.

    Keys are sorted so that re-indexing an unchanged record stores
    byte-identical payloads.

    Raises:
        SerializationError: If the record holds values JSON cannot encode.
    """
    try:
        return json.dumps(asdict(record), sort_keys=True, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot encode record {record.key}: {exc}") from exc


def _only_known(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys a dataclass doesn't define, so older payloads still load."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def payload_to_record(payload: str) -> LibraryRecord:
    """Deserialize a JSON payload back into a LibraryRecord.

    Raises:
        SerializationError: If the payload is not valid JSON or lacks
            required fields.
    """
    try:
        data = json.loads(payload)
        data = _only_known(LibraryRecord, data)
        data["creators"] = [
            Creator(**_only_known(Creator, c)) for c in data.get("creators", [])
        ]
        data["attachments"] = [
            Attachment(**_only_known(Attachment, a)) for a in data.get("attachments", [])
        ]
        return LibraryRecord(**data)
    except (TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"Cannot decode payload: {exc}") from exc
