# ABOUTME: Shared pytest fixtures for zotindex tests.
# ABOUTME: Provides a seeded Zotero-shaped source database and index paths.

from pathlib import Path

import pytest

from tests.fixtures.zotero_db import ZoteroBuilder
from zotindex.core.library import LibraryIndex


@pytest.fixture
def zotero(tmp_path: Path) -> ZoteroBuilder:
    """An empty Zotero database."""
    return ZoteroBuilder(tmp_path / "zotero.sqlite")


@pytest.fixture
def seeded_zotero(zotero: ZoteroBuilder) -> ZoteroBuilder:
    """A Zotero database with three papers, a trashed one, and child items.

    Layout:
        AAAA1111  Deep Learning (book, 2016), Goodfellow/Bengio/Courville, PDF attachment
        BBBB2222  Attention Is All You Need (journalArticle, 2017), notes and tags
        CCCC3333  Brown v. Board of Education (case, caseName, dateDecided 1954)
        DDDD4444  Trashed Paper (in deletedItems)
    """
    deep = zotero.add_item(
        "AAAA1111",
        "book",
        fields={
            "title": "Deep Learning",
            "date": "2016-11-01 2016-11-01",
            "publisher": "MIT Press",
            "abstractNote": "An introduction to a broad range of topics in deep learning.",
        },
        creators=[
            ("Ian", "Goodfellow", "author"),
            ("Yoshua", "Bengio", "author"),
            ("Aaron", "Courville", "author"),
        ],
        tags=["machine learning", "textbook"],
        collections=["Reading List"],
    )
    zotero.add_attachment(deep, "PDFA1111", title="Deep Learning Full Text")
    zotero.add_item(
        "BBBB2222",
        fields={
            "title": "Attention Is All You Need",
            "date": "2017-06-12",
            "conferenceName": "NeurIPS",
            "proceedingsTitle": "Advances in Neural Information Processing Systems",
            "DOI": "10.48550/arXiv.1706.03762",
        },
        creators=[("Ashish", "Vaswani", "author"), ("Jakob", "Uszkoreit", "editor")],
        tags=["transformers"],
        notes=["<p>Introduces the <b>Transformer</b>   architecture.</p>"],
    )
    zotero.add_item(
        "CCCC3333",
        "case",
        fields={"caseName": "Brown v. Board of Education", "dateDecided": "1954-05-17"},
    )
    trashed = zotero.add_item("DDDD4444", fields={"title": "Trashed Paper"})
    zotero.trash(trashed)
    return zotero


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    """Location of a not-yet-created search index."""
    return tmp_path / "index" / "index.db"


@pytest.fixture
def library(index_path: Path, seeded_zotero: ZoteroBuilder) -> LibraryIndex:
    """A LibraryIndex over the seeded source, set up and fully synced."""
    lib = LibraryIndex(index_path, seeded_zotero.path)
    lib.setup()
    lib.update(force=True)
    return lib
