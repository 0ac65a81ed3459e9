"""Tests for catalog read/write operations."""

# pylint: disable=redefined-outer-name

from pathlib import Path

import pytest

from audioshelf.database import Audiobook, AudiobookFile, Catalog, Database
from audioshelf.errors import PersistenceError, ScanRootError


@pytest.fixture
def catalog(tmp_path: Path):
    """Open a catalog on a fresh database file."""
    with Database(tmp_path / "catalog.db") as db:
        yield Catalog(db)


@pytest.fixture
def library(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    root.mkdir()
    return root


def _add_book(catalog: Catalog, root: Path, name: str, files: int = 2) -> int:
    catalog.add_scan_root(root)
    audiobook_id = catalog.insert_audiobook(
        Audiobook(id=None, scan_root=str(root), name=name, full_path=str(root / name))
    )
    for position in range(files):
        catalog.insert_file(
            AudiobookFile(
                id=None,
                audiobook_id=audiobook_id,
                name=f"{position:02d}.mp3",
                full_path=str(root / name / f"{position:02d}.mp3"),
                position=position,
                fingerprint="fs:v1:0000000000000000",
            )
        )
    return audiobook_id


class TestScanRoots:
    """Tests for scan root registration."""

    def test_add_and_list(self, catalog: Catalog, library: Path):
        root = catalog.add_scan_root(library)

        assert root.path == str(library)
        assert root.last_scanned_at_unix is None
        assert [r.path for r in catalog.get_scan_roots()] == [str(library)]

    def test_add_is_idempotent(self, catalog: Catalog, library: Path):
        first = catalog.add_scan_root(library)
        second = catalog.add_scan_root(str(library) + "/")

        assert second.path == first.path
        assert len(catalog.get_scan_roots()) == 1

    def test_rejects_relative_path(self, catalog: Catalog):
        with pytest.raises(ScanRootError, match="absolute"):
            catalog.add_scan_root("books")

    def test_rejects_missing_directory(self, catalog: Catalog, tmp_path: Path):
        with pytest.raises(ScanRootError, match="directory"):
            catalog.add_scan_root(tmp_path / "missing")

    def test_rejects_nul(self, catalog: Catalog):
        with pytest.raises(ScanRootError, match="NUL"):
            catalog.add_scan_root("/books\0evil")

    def test_mark_scanned(self, catalog: Catalog, library: Path):
        catalog.add_scan_root(library)
        catalog.mark_root_scanned(library, when=1700000000.5)

        root = catalog.get_scan_root(library)
        assert root is not None
        assert root.last_scanned_at_unix == 1700000000.5

    def test_remove_cascades(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book")

        catalog.remove_scan_root(library)

        assert catalog.get_scan_roots() == []
        assert catalog.get_audiobook_by_id(audiobook_id) is None
        assert catalog.get_audiobook_files(audiobook_id) == []

    def test_remove_unknown_root(self, catalog: Catalog, library: Path):
        with pytest.raises(ScanRootError):
            catalog.remove_scan_root(library)


class TestAudiobooks:
    """Tests for audiobook records."""

    def test_insert_sets_id(self, catalog: Catalog, library: Path):
        catalog.add_scan_root(library)
        audiobook = Audiobook(id=None, scan_root=str(library), name="Book", full_path=str(library / "Book"))

        audiobook_id = catalog.insert_audiobook(audiobook)

        assert audiobook.id == audiobook_id
        stored = catalog.get_audiobook_by_path(library / "Book")
        assert stored is not None
        assert stored.completeness == 0
        assert stored.selected_file is None

    def test_insert_requires_registered_root(self, catalog: Catalog, library: Path):
        with pytest.raises(PersistenceError):
            catalog.insert_audiobook(
                Audiobook(id=None, scan_root=str(library), name="Book", full_path=str(library / "Book"))
            )

    def test_rejects_nul_in_name(self, catalog: Catalog, library: Path):
        catalog.add_scan_root(library)
        with pytest.raises(ValueError):
            catalog.insert_audiobook(
                Audiobook(id=None, scan_root=str(library), name="a\0b", full_path=str(library / "a"))
            )

    def test_by_root_in_default_order(self, catalog: Catalog, library: Path):
        catalog.add_scan_root(library)
        for order, name in [(1, "Second"), (0, "First")]:
            catalog.insert_audiobook(
                Audiobook(
                    id=None,
                    scan_root=str(library),
                    name=name,
                    full_path=str(library / name),
                    default_order=order,
                )
            )

        assert [a.name for a in catalog.get_audiobooks_by_root(library)] == ["First", "Second"]
        assert catalog.count_audiobooks(library) == 2
        assert catalog.count_audiobooks() == 2

    def test_completeness_clamped(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book")

        catalog.update_audiobook_completeness(audiobook_id, 150)

        audiobook = catalog.get_audiobook_by_id(audiobook_id)
        assert audiobook is not None
        assert audiobook.completeness == 100
        assert audiobook.is_complete

    def test_reset_progress(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book")
        catalog.update_file_progress(library / "Book" / "00.mp3", 5000, 40)
        catalog.update_audiobook_completeness(audiobook_id, 20)
        catalog.update_audiobook_selected_file(audiobook_id, str(library / "Book" / "00.mp3"))

        catalog.reset_audiobook_progress(audiobook_id)

        audiobook = catalog.get_audiobook_by_id(audiobook_id)
        assert audiobook is not None
        assert audiobook.completeness == 0
        assert audiobook.selected_file is None
        for file in catalog.get_audiobook_files(audiobook_id):
            assert file.seek_position_ms is None
            assert file.completeness == 0

    def test_mark_complete(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book")

        catalog.mark_audiobook_complete(audiobook_id)

        assert all(f.is_complete for f in catalog.get_audiobook_files(audiobook_id))
        audiobook = catalog.get_audiobook_by_id(audiobook_id)
        assert audiobook is not None
        assert audiobook.completeness == 100


class TestAudiobookFiles:
    """Tests for audiobook file records."""

    def test_files_in_position_order(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book", files=3)

        files = catalog.get_audiobook_files(audiobook_id)

        assert [f.position for f in files] == [0, 1, 2]
        assert all(f.file_exists for f in files)
        assert catalog.count_audiobook_files(audiobook_id) == 3

    def test_get_by_path(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book")
        path = library / "Book" / "01.mp3"

        assert catalog.get_file_by_path(path) is not None
        found = catalog.get_file_by_path(path, audiobook_id=audiobook_id)
        assert found is not None
        assert found.name == "01.mp3"
        assert catalog.get_file_by_path(path, audiobook_id=audiobook_id + 1) is None

    def test_duplicate_path_in_audiobook_rejected(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book", files=1)
        with pytest.raises(PersistenceError):
            catalog.insert_file(
                AudiobookFile(
                    id=None,
                    audiobook_id=audiobook_id,
                    name="00.mp3",
                    full_path=str(library / "Book" / "00.mp3"),
                    position=1,
                )
            )

    def test_progress_update(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book", files=1)
        path = library / "Book" / "00.mp3"

        catalog.update_file_length(path, 60000)
        catalog.update_file_progress(path, 30000, 50)

        file = catalog.get_audiobook_files(audiobook_id)[0]
        assert file.length_ms == 60000
        assert file.seek_position_ms == 30000
        assert file.completeness == 50
        assert file.calculate_completeness() == 50

    def test_negative_seek_rejected(self, catalog: Catalog, library: Path):
        _add_book(catalog, library, "Book", files=1)
        with pytest.raises(ValueError):
            catalog.update_file_progress(library / "Book" / "00.mp3", -1, 0)

    def test_existence_flag(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book", files=2)
        first = catalog.get_audiobook_files(audiobook_id)[0]
        assert first.id is not None

        catalog.set_file_exists(first.id, False)
        assert catalog.mark_audiobook_files_missing(audiobook_id) == 1

        assert not any(f.file_exists for f in catalog.get_audiobook_files(audiobook_id))

    def test_fingerprint_and_placement(self, catalog: Catalog, library: Path):
        audiobook_id = _add_book(catalog, library, "Book", files=1)
        file = catalog.get_audiobook_files(audiobook_id)[0]
        assert file.id is not None

        catalog.update_file_fingerprint(file.id, "fs:v1:ffffffffffffffff")
        catalog.update_file_placement(file.id, "Renamed.mp3", 4)

        updated = catalog.get_audiobook_files(audiobook_id)[0]
        assert updated.fingerprint == "fs:v1:ffffffffffffffff"
        assert updated.name == "Renamed.mp3"
        assert updated.position == 4


class TestMetadata:
    """Tests for the key/value metadata table."""

    def test_roundtrip(self, catalog: Catalog):
        assert catalog.get_metadata("last_audiobook") is None
        catalog.set_metadata("last_audiobook", "/books/Dune")
        catalog.set_metadata("last_audiobook", "/books/Emma")
        assert catalog.get_metadata("last_audiobook") == "/books/Emma"
        catalog.delete_metadata("last_audiobook")
        assert catalog.get_metadata("last_audiobook") is None
