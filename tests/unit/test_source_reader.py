# ABOUTME: Unit tests for the Zotero snapshot reader.
# ABOUTME: Validates snapshot isolation, record assembly, incremental reads, and valid-ID lookups.

import sqlite3
from pathlib import Path

import pytest

from tests.fixtures.zotero_db import ZoteroBuilder
from zotindex.source import queries
from zotindex.source.reader import (
    SourceConnectionError,
    SourceQueryError,
    SourceReader,
    clean_note,
)


def _by_key(reader: SourceReader, since: str | None = None) -> dict:
    return {record.key: record for record in reader.records(since)}


class TestOpen:
    """Tests for opening and closing a snapshot."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SourceConnectionError):
            SourceReader.open(tmp_path / "missing.sqlite")

    def test_not_a_database_raises(self, tmp_path: Path) -> None:
        bogus = tmp_path / "zotero.sqlite"
        bogus.write_text("this is not a sqlite database")
        with pytest.raises(SourceConnectionError):
            SourceReader.open(bogus)

    def test_database_without_zotero_tables_raises(self, tmp_path: Path) -> None:
        other = tmp_path / "other.sqlite"
        sqlite3.connect(other).close()
        with pytest.raises(SourceConnectionError):
            SourceReader.open(other)

    def test_reads_from_a_private_copy(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            snapshot = reader.snapshot_path
            assert snapshot is not None
            assert snapshot.exists()
            assert snapshot != seeded_zotero.path

    def test_close_removes_snapshot(self, seeded_zotero: ZoteroBuilder) -> None:
        reader = SourceReader.open(seeded_zotero.path)
        snapshot = reader.snapshot_path
        reader.close()
        assert reader.snapshot_path is None
        assert snapshot is not None
        assert not snapshot.exists()

    def test_snapshot_ignores_later_writes(self, seeded_zotero: ZoteroBuilder) -> None:
        """Items added to the live store after open are not seen by the pass."""
        with SourceReader.open(seeded_zotero.path) as reader:
            seeded_zotero.add_item("EEEE5555", fields={"title": "Added Later"})
            keys = set(_by_key(reader))
        assert "EEEE5555" not in keys


class TestRecords:
    """Tests for SourceReader.records()."""

    def test_only_live_top_level_items(self, seeded_zotero: ZoteroBuilder) -> None:
        """Attachments, notes, and trashed items are not records."""
        with SourceReader.open(seeded_zotero.path) as reader:
            keys = set(_by_key(reader))
        assert keys == {"AAAA1111", "BBBB2222", "CCCC3333"}

    def test_record_fields(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            record = _by_key(reader)["AAAA1111"]

        assert record.item_type == "book"
        assert record.title == "Deep Learning"
        assert record.year == "2016"
        assert record.modified == "2024-01-01 00:00:00"
        assert [c.family for c in record.creators] == ["Goodfellow", "Bengio", "Courville"]
        assert [c.index for c in record.creators] == [0, 1, 2]
        assert record.tags == ["machine learning", "textbook"]
        assert record.collections == ["Reading List"]

    def test_attachments(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            record = _by_key(reader)["AAAA1111"]

        assert len(record.attachments) == 1
        attachment = record.attachments[0]
        assert attachment.key == "PDFA1111"
        assert attachment.title == "Deep Learning Full Text"
        assert attachment.content_type == "application/pdf"
        assert attachment.path == "storage:paper.pdf"

    def test_trashed_attachment_is_dropped(self, zotero: ZoteroBuilder) -> None:
        parent = zotero.add_item("PARENT01", fields={"title": "Parent"})
        gone = zotero.add_attachment(parent, "GONEPDF1")
        zotero.trash(gone)

        with SourceReader.open(zotero.path) as reader:
            record = _by_key(reader)["PARENT01"]
        assert record.attachments == []

    def test_notes_are_cleaned(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            record = _by_key(reader)["BBBB2222"]
        assert record.notes == ["Introduces the Transformer architecture."]

    def test_case_uses_case_name_and_date_decided(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            record = _by_key(reader)["CCCC3333"]
        assert record.title == "Brown v. Board of Education"
        assert record.year == "1954"

    def test_since_yields_strictly_newer_records(self, seeded_zotero: ZoteroBuilder) -> None:
        seeded_zotero.add_item(
            "EEEE5555", fields={"title": "Fresh"}, modified="2024-06-01 12:00:00"
        )
        with SourceReader.open(seeded_zotero.path) as reader:
            newer = _by_key(reader, since="2024-01-01 00:00:00")
            none_newer = _by_key(reader, since="2024-06-01 12:00:00")
        assert set(newer) == {"EEEE5555"}
        assert none_newer == {}

    def test_records_is_single_pass(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            stream = reader.records()
            assert len(list(stream)) == 3
            assert list(stream) == []

    def test_horizon_is_newest_modification(self, seeded_zotero: ZoteroBuilder) -> None:
        seeded_zotero.add_item(
            "EEEE5555", fields={"title": "Fresh"}, modified="2024-06-01 12:00:00"
        )
        with SourceReader.open(seeded_zotero.path) as reader:
            assert reader.horizon() == "2024-06-01 12:00:00"

    def test_integer_field_values_become_text(self, zotero: ZoteroBuilder) -> None:
        """Zotero's value column has no type affinity; numbers come back as ints."""
        zotero.add_item(
            "NUMS0001",
            fields={"title": 1984, "conferenceName": 2019, "volume": 12},
        )
        with SourceReader.open(zotero.path) as reader:
            record = _by_key(reader)["NUMS0001"]

        assert record.meta["volume"] == "12"
        assert record.title == "1984"
        assert record.publisher == "2019"

    def test_horizon_query_failure_raises_source_error(
        self, seeded_zotero: ZoteroBuilder, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(queries, "SELECT_HORIZON", "SELECT horizon FROM no_such_table")
        with SourceReader.open(seeded_zotero.path) as reader, pytest.raises(SourceQueryError):
            reader.horizon()

    def test_failure_while_stepping_items_raises_source_error(
        self, seeded_zotero: ZoteroBuilder
    ) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            stream = reader.records()
            next(stream)
            reader.conn.close()
            with pytest.raises(SourceQueryError):
                next(stream)


class TestValidIdentifiers:
    """Tests for SourceReader.valid_identifiers()."""

    def test_lists_live_top_level_ids(self, seeded_zotero: ZoteroBuilder) -> None:
        with SourceReader.open(seeded_zotero.path) as reader:
            valid = reader.valid_identifiers()
            ids = {record.id for record in reader.records()}
        assert valid.ok
        assert valid.ids == ids

    def test_empty_library_is_ok_and_empty(self, zotero: ZoteroBuilder) -> None:
        with SourceReader.open(zotero.path) as reader:
            valid = reader.valid_identifiers()
        assert valid.ok
        assert valid.ids == frozenset()

    def test_failure_is_signalled(self, seeded_zotero: ZoteroBuilder) -> None:
        reader = SourceReader.open(seeded_zotero.path)
        reader.close()
        valid = reader.valid_identifiers()
        assert not valid.ok
        assert valid.ids == frozenset()


class TestCleanNote:
    """Tests for clean_note()."""

    def test_strips_tags_and_collapses_whitespace(self) -> None:
        assert clean_note("<div>\n<p>One</p>\n\n<p>Two  three</p></div>") == "One Two three"

    def test_unescapes_entities(self) -> None:
        assert clean_note("<p>Fish &amp; Chips</p>") == "Fish & Chips"
