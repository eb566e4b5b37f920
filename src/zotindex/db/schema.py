# ABOUTME: SQL DDL statements for the zotindex search index.
# ABOUTME: Defines the FTS5 document table, payload table, version and sync-state tables.

# Bump on any change to the statements below; a mismatch rebuilds the index.
INDEX_VERSION = 1

# FTS5 columns of the documents table with their bm25 weights, in column order.
# Titles and person names count most, descriptive text least.
DOCUMENT_COLUMNS: tuple[tuple[str, float], ...] = (
    ("key", 0.0),
    ("title", 1.0),
    ("short_title", 1.0),
    ("doi", 1.0),
    ("year", 0.5),
    ("creators", 1.0),
    ("authors", 1.0),
    ("editors", 1.0),
    ("tags", 0.5),
    ("collections", 0.5),
    ("attachments", 0.4),
    ("notes", 0.3),
    ("abstract", 0.4),
    ("publisher", 0.4),
)

_COLUMN_NAMES = ",\n    ".join(name for name, _ in DOCUMENT_COLUMNS)

CREATE_STATEMENTS: tuple[str, ...] = (
    f"""
CREATE VIRTUAL TABLE documents USING fts5(
    {_COLUMN_NAMES},
    tokenize='unicode61 remove_diacritics 2'
)
""",
    """
CREATE TABLE payloads (
    id   INTEGER PRIMARY KEY NOT NULL,
    key  TEXT NOT NULL,
    obj  TEXT NOT NULL
)
""",
    "CREATE INDEX idx_payloads_key ON payloads(key)",
    """
CREATE TABLE sync_state (
    name  TEXT PRIMARY KEY NOT NULL,
    value TEXT NOT NULL
)
""",
    """
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
)
""",
    f"INSERT INTO schema_version (version) VALUES ({INDEX_VERSION})",
)

# Every table any index format has used, current and retired.
DROP_STATEMENTS: tuple[str, ...] = tuple(
    f"DROP TABLE IF EXISTS {name}"
    for name in (
        "documents",
        "payloads",
        "sync_state",
        "schema_version",
        "search",
        "data",
        "dbinfo",
        "modified",
    )
)
