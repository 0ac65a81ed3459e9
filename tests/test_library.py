"""Tests for LibraryScanner orchestration."""

# pylint: disable=redefined-outer-name

import os
import shutil
from pathlib import Path

import pytest

from audioshelf.config import ScannerConfig
from audioshelf.database import Catalog, Database
from audioshelf.errors import RootNotFoundError, ScanRootError
from audioshelf.library import LibraryScanner


@pytest.fixture
def db(tmp_path: Path):
    with Database(tmp_path / "catalog.db") as database:
        yield database


def _make_library(base: Path, *books: str) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    for book in books:
        (base / book).mkdir(parents=True, exist_ok=True)
        (base / book / "01.mp3").write_bytes(b"audio")
    return base


class TestLibraryScanner:
    """Tests for LibraryScanner class."""

    def test_add_root_scans_immediately(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune", "Emma")

        event = LibraryScanner(db, quiet=True).add_root(root)

        assert event.root == root
        assert [a.name for a in event.audiobooks] == ["Dune", "Emma"]
        assert event.files_discovered == 2
        assert event.stats.audiobooks_inserted == 2
        assert Catalog(db).count_audiobooks(root) == 2

    def test_add_relative_root(self, db: Database, tmp_path: Path, monkeypatch):
        _make_library(tmp_path / "books", "Dune")
        monkeypatch.chdir(tmp_path)

        event = LibraryScanner(db, quiet=True).add_root("books")

        assert event.root == tmp_path / "books"
        assert [r.path for r in Catalog(db).get_scan_roots()] == [str(tmp_path / "books")]

    def test_scan_unregistered_root(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune")

        with pytest.raises(ScanRootError):
            LibraryScanner(db, quiet=True).scan_root(root)

    def test_scan_missing_root_leaves_catalog(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune")
        scanner = LibraryScanner(db, quiet=True)
        scanner.add_root(root)

        shutil.rmtree(root)
        with pytest.raises(RootNotFoundError):
            scanner.scan_root(root)

        catalog = Catalog(db)
        assert catalog.count_audiobooks(root) == 1
        audiobook = catalog.get_audiobook_by_path(root / "Dune")
        assert audiobook is not None and audiobook.id is not None
        assert all(f.file_exists for f in catalog.get_audiobook_files(audiobook.id))

    def test_scan_all_continues_after_failure(self, db: Database, tmp_path: Path):
        first = _make_library(tmp_path / "a", "Dune")
        second = _make_library(tmp_path / "b", "Emma")
        scanner = LibraryScanner(db, quiet=True)
        scanner.add_root(first)
        scanner.add_root(second)
        shutil.rmtree(first)

        completed, failures = scanner.scan_all()

        assert [event.root for event in completed] == [second]
        assert [failure.root for failure in failures] == [first]
        assert isinstance(failures[0].error, RootNotFoundError)

    def test_remove_root(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune")
        scanner = LibraryScanner(db, quiet=True)
        scanner.add_root(root)

        scanner.remove_root(root)

        assert scanner.roots() == []
        assert Catalog(db).count_audiobooks() == 0

    def test_config_extensions(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune")
        config = ScannerConfig(audio_extensions=frozenset({"m4b"}))

        event = LibraryScanner(db, config, quiet=True).add_root(root)

        assert event.audiobooks == []

    def test_unreadable_entries_reported(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune")
        config = ScannerConfig(max_path_length=len(str(root / "Dune" / "01.mp3")) - 1)

        event = LibraryScanner(db, config, quiet=True).add_root(root)

        assert event.audiobooks == []
        assert [u.reason for u in event.unreadable] == ["path too long"]

    def test_undecodable_file_name_does_not_abort_scan(self, db: Database, tmp_path: Path):
        root = _make_library(tmp_path / "books", "Dune")
        try:
            with open(os.fsencode(root / "Dune") + b"/caf\xe9.mp3", "wb") as f:
                f.write(b"audio")
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")

        event = LibraryScanner(db, quiet=True).add_root(root)

        assert event.files_discovered == 1
        assert [u.reason for u in event.unreadable] == ["undecodable name"]
        audiobook = Catalog(db).get_audiobook_by_path(root / "Dune")
        assert audiobook is not None and audiobook.id is not None
        assert [f.name for f in Catalog(db).get_audiobook_files(audiobook.id)] == ["01.mp3"]
