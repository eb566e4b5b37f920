# ABOUTME: Core data structures for records read from a Zotero library.
# ABOUTME: LibraryRecord is the interchange format between the source reader, index, and CLI.

import re
from dataclasses import dataclass, field

# Zotero stores dates as "YYYY-MM-DD originalText"; partial dates use "00" parts.
ZOTERO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2}).*")

# Ordered candidates: the first field present on a record wins.
TITLE_FIELDS = ("title", "caseName", "nameOfAct", "subject")
DATE_FIELDS = ("dateEnacted", "dateDecided", "filingDate", "issueDate", "date")

# Every present field contributes, in this order.
PUBLISHER_FIELDS = (
    "publisher",
    "journalAbbreviation",
    "conferenceName",
    "proceedingsTitle",
    "websiteTitle",
)

PDF_CONTENT_TYPE = "application/pdf"


def resolve_year(meta: dict[str, str]) -> str:
    """Resolve a 4-digit year from the first date-bearing field of a record.

    Zotero's normalized form "2016-11-01 November 1, 2016" yields "2016".
    Values that don't follow that form fall back to their first four
    characters. Returns an empty string when no date field is present.
    """
    for name in DATE_FIELDS:
        if name in meta:
            value = meta[name]
            match = ZOTERO_DATE_RE.match(value)
            return match.group(1) if match else value[:4]
    return ""


def resolve_publisher(meta: dict[str, str]) -> str:
    """Join every publisher-like field present on a record."""
    return " ".join(meta[name] for name in PUBLISHER_FIELDS if name in meta)


def resolve_title(meta: dict[str, str]) -> str:
    """Return the record title, falling back to type-specific title fields."""
    for name in TITLE_FIELDS:
        if meta.get(name):
            return meta[name]
    return ""


@dataclass
class Creator:
    """A person credited on a record, in the record's creator order."""

    given: str
    family: str
    role: str
    index: int = 0

    @property
    def name(self) -> str:
        return f"{self.given} {self.family}".strip()


@dataclass
class Attachment:
    """A child attachment (PDF, snapshot, link) of a library record."""

    key: str
    path: str = ""
    title: str = ""
    url: str = ""
    content_type: str = ""


@dataclass
class LibraryRecord:
    """One top-level entry of a Zotero library.

    Built fresh from the source on every read pass. The metadata mapping
    holds whatever fields the record's item type defines, so title, year,
    and the like are resolved through properties rather than stored.
    """

    id: int
    key: str
    modified: str = ""
    item_type: str = ""
    library_id: int = 1
    meta: dict[str, str] = field(default_factory=dict)
    creators: list[Creator] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def title(self) -> str:
        return resolve_title(self.meta)

    @property
    def short_title(self) -> str:
        return self.meta.get("shortTitle", "")

    @property
    def doi(self) -> str:
        return self.meta.get("DOI", "")

    @property
    def abstract(self) -> str:
        return self.meta.get("abstractNote", "")

    @property
    def year(self) -> str:
        return resolve_year(self.meta)

    @property
    def publisher(self) -> str:
        return resolve_publisher(self.meta)

    @property
    def authors(self) -> list[Creator]:
        return [c for c in self.creators if c.role == "author"]

    @property
    def editors(self) -> list[Creator]:
        return [c for c in self.creators if c.role == "editor"]

    @property
    def author_summary(self) -> str:
        """Short display form of the creator list: "A", "A and B", or "A et al."."""
        names = [c.family or c.given for c in self.creators]
        if not names:
            return ""
        if len(names) == 1:
            return names[0]
        if len(names) == 2:
            return f"{names[0]} and {names[1]}"
        return f"{names[0]} et al."

    @property
    def pdf_attachment(self) -> Attachment | None:
        """The first PDF attachment, if the record has one."""
        for attachment in self.attachments:
            if attachment.content_type == PDF_CONTENT_TYPE:
                return attachment
        return None
