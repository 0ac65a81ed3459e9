"""Read/write operations on the audiobook catalog."""

import logging
import os
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from audioshelf.errors import ScanRootError

from .connection import Database
from .models import Audiobook, AudiobookFile, ScanRoot

logger = logging.getLogger(__name__)

_AUDIOBOOK_COLUMNS = """
    id, scan_root, name, full_path, completeness, default_order,
    selected_file, created_at_unix
"""

_FILE_COLUMNS = """
    id, audiobook_id, name, full_path, position, length_ms, seek_position_ms,
    fingerprint, completeness, file_exists, created_at_unix
"""


class Catalog:
    """Narrow persistence contract used by the scanner, reconciler and CLI.

    Write methods do not commit on their own when called inside
    ``transaction()``; called standalone, each one commits its own change.
    """

    def __init__(self, db: Database):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self.db.transaction() as conn:
            yield conn

    # -- scan roots ---------------------------------------------------------

    def add_scan_root(self, path: str | Path) -> ScanRoot:
        root = _validate_scan_root(path)
        existing = self.get_scan_root(root)
        if existing is not None:
            logger.info("Scan root already registered: %s", root)
            return existing

        now = time.time()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO scan_roots (path, created_at_unix, created_at)
                VALUES (?, ?, ?)
                """,
                (root, now, int(now)),
            )
        logger.info("Registered scan root: %s", root)
        return ScanRoot(path=root, created_at_unix=now)

    def get_scan_root(self, path: str | Path) -> ScanRoot | None:
        row = self.db.conn.execute(
            "SELECT path, created_at_unix, last_scanned_at_unix FROM scan_roots WHERE path = ?",
            (_normalize_root(path),),
        ).fetchone()
        return _row_to_scan_root(row) if row else None

    def get_scan_roots(self) -> list[ScanRoot]:
        rows = self.db.conn.execute(
            "SELECT path, created_at_unix, last_scanned_at_unix FROM scan_roots ORDER BY path"
        ).fetchall()
        return [_row_to_scan_root(row) for row in rows]

    def remove_scan_root(self, path: str | Path) -> None:
        """Hard-delete a root together with its audiobooks and files."""
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM scan_roots WHERE path = ?",
                (_normalize_root(path),),
            )
            if cursor.rowcount == 0:
                raise ScanRootError(f"Scan root is not registered: {path}")
        logger.info("Removed scan root: %s", path)

    def mark_root_scanned(self, path: str | Path, when: float | None = None) -> None:
        now = time.time() if when is None else when
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE scan_roots SET last_scanned_at_unix = ?, last_scanned_at = ?
                WHERE path = ?
                """,
                (now, int(now), _normalize_root(path)),
            )

    # -- audiobooks ---------------------------------------------------------

    def insert_audiobook(self, audiobook: Audiobook) -> int:
        _validate_no_nul("audiobook.name", audiobook.name)
        _validate_no_nul("audiobook.full_path", audiobook.full_path)
        now = time.time()
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO audiobooks
                (scan_root, name, full_path, completeness, default_order,
                 selected_file, created_at_unix, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    audiobook.scan_root,
                    audiobook.name,
                    audiobook.full_path,
                    audiobook.completeness,
                    audiobook.default_order,
                    audiobook.selected_file,
                    now,
                    int(now),
                ),
            )
        assert cursor.lastrowid is not None
        audiobook.id = cursor.lastrowid
        audiobook.created_at_unix = now
        return cursor.lastrowid

    def get_audiobook_by_id(self, audiobook_id: int) -> Audiobook | None:
        row = self.db.conn.execute(
            f"SELECT {_AUDIOBOOK_COLUMNS} FROM audiobooks WHERE id = ?",
            (audiobook_id,),
        ).fetchone()
        return _row_to_audiobook(row) if row else None

    def get_audiobook_by_path(self, path: str | Path) -> Audiobook | None:
        row = self.db.conn.execute(
            f"SELECT {_AUDIOBOOK_COLUMNS} FROM audiobooks WHERE full_path = ?",
            (str(path),),
        ).fetchone()
        return _row_to_audiobook(row) if row else None

    def get_audiobooks_by_root(self, root: str | Path) -> list[Audiobook]:
        rows = self.db.conn.execute(
            f"""
            SELECT {_AUDIOBOOK_COLUMNS} FROM audiobooks
            WHERE scan_root = ? ORDER BY default_order, id
            """,
            (_normalize_root(root),),
        ).fetchall()
        return [_row_to_audiobook(row) for row in rows]

    def get_all_audiobooks(self) -> list[Audiobook]:
        rows = self.db.conn.execute(
            f"SELECT {_AUDIOBOOK_COLUMNS} FROM audiobooks ORDER BY scan_root, default_order, id"
        ).fetchall()
        return [_row_to_audiobook(row) for row in rows]

    def update_audiobook_completeness(self, audiobook_id: int, completeness: int) -> None:
        completeness = max(0, min(100, completeness))
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobooks SET completeness = ? WHERE id = ?",
                (completeness, audiobook_id),
            )

    def update_audiobook_selected_file(self, audiobook_id: int, file_path: str | None) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobooks SET selected_file = ? WHERE id = ?",
                (file_path, audiobook_id),
            )

    def reset_audiobook_progress(self, audiobook_id: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE audiobook_files SET seek_position_ms = NULL, completeness = 0
                WHERE audiobook_id = ?
                """,
                (audiobook_id,),
            )
            conn.execute(
                "UPDATE audiobooks SET completeness = 0, selected_file = NULL WHERE id = ?",
                (audiobook_id,),
            )

    def mark_audiobook_complete(self, audiobook_id: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobook_files SET completeness = 100 WHERE audiobook_id = ?",
                (audiobook_id,),
            )
            conn.execute(
                "UPDATE audiobooks SET completeness = 100 WHERE id = ?",
                (audiobook_id,),
            )

    def count_audiobooks(self, root: str | Path | None = None) -> int:
        if root is None:
            return self.db.conn.execute("SELECT COUNT(*) FROM audiobooks").fetchone()[0]
        return self.db.conn.execute(
            "SELECT COUNT(*) FROM audiobooks WHERE scan_root = ?",
            (_normalize_root(root),),
        ).fetchone()[0]

    # -- audiobook files ----------------------------------------------------

    def insert_file(self, file: AudiobookFile) -> int:
        _validate_no_nul("file.name", file.name)
        _validate_no_nul("file.full_path", file.full_path)
        now = time.time()
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO audiobook_files
                (audiobook_id, name, full_path, position, length_ms, seek_position_ms,
                 fingerprint, completeness, file_exists, created_at_unix, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    file.audiobook_id,
                    file.name,
                    file.full_path,
                    file.position,
                    file.length_ms,
                    file.seek_position_ms,
                    file.fingerprint,
                    file.completeness,
                    file.file_exists,
                    now,
                    int(now),
                ),
            )
        assert cursor.lastrowid is not None
        file.id = cursor.lastrowid
        file.created_at_unix = now
        return cursor.lastrowid

    def get_audiobook_files(self, audiobook_id: int) -> list[AudiobookFile]:
        rows = self.db.conn.execute(
            f"""
            SELECT {_FILE_COLUMNS} FROM audiobook_files
            WHERE audiobook_id = ? ORDER BY position, id
            """,
            (audiobook_id,),
        ).fetchall()
        return [_row_to_file(row) for row in rows]

    def get_file_by_path(
        self,
        path: str | Path,
        audiobook_id: int | None = None,
    ) -> AudiobookFile | None:
        if audiobook_id is None:
            row = self.db.conn.execute(
                f"SELECT {_FILE_COLUMNS} FROM audiobook_files WHERE full_path = ? ORDER BY id",
                (str(path),),
            ).fetchone()
        else:
            row = self.db.conn.execute(
                f"""
                SELECT {_FILE_COLUMNS} FROM audiobook_files
                WHERE full_path = ? AND audiobook_id = ?
                """,
                (str(path), audiobook_id),
            ).fetchone()
        return _row_to_file(row) if row else None

    def update_file_fingerprint(self, file_id: int, fingerprint: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobook_files SET fingerprint = ? WHERE id = ?",
                (fingerprint, file_id),
            )

    def update_file_placement(self, file_id: int, name: str, position: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobook_files SET name = ?, position = ? WHERE id = ?",
                (name, position, file_id),
            )

    def reset_file_progress(self, file_id: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE audiobook_files SET seek_position_ms = NULL, completeness = 0
                WHERE id = ?
                """,
                (file_id,),
            )

    def set_file_exists(self, file_id: int, exists: bool) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobook_files SET file_exists = ? WHERE id = ?",
                (exists, file_id),
            )

    def mark_audiobook_files_missing(self, audiobook_id: int) -> int:
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE audiobook_files SET file_exists = FALSE
                WHERE audiobook_id = ? AND file_exists = TRUE
                """,
                (audiobook_id,),
            )
        return cursor.rowcount

    def update_file_progress(
        self,
        full_path: str | Path,
        seek_position_ms: int,
        completeness: int,
    ) -> None:
        """Record playback progress reported by the player."""
        if seek_position_ms < 0:
            raise ValueError(f"Seek position must not be negative: {seek_position_ms}")
        completeness = max(0, min(100, completeness))
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE audiobook_files SET seek_position_ms = ?, completeness = ?
                WHERE full_path = ?
                """,
                (seek_position_ms, completeness, str(full_path)),
            )

    def update_file_length(self, full_path: str | Path, length_ms: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE audiobook_files SET length_ms = ? WHERE full_path = ?",
                (length_ms, str(full_path)),
            )

    def count_audiobook_files(self, audiobook_id: int) -> int:
        return self.db.conn.execute(
            "SELECT COUNT(*) FROM audiobook_files WHERE audiobook_id = ?",
            (audiobook_id,),
        ).fetchone()[0]

    # -- metadata -----------------------------------------------------------

    def get_metadata(self, key: str) -> str | None:
        row = self.db.conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_metadata(self, key: str, value: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                (key, value),
            )

    def delete_metadata(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM metadata WHERE key = ?", (key,))


def _normalize_root(path: str | Path) -> str:
    return os.path.normpath(str(path))


def _validate_no_nul(field: str, value: str) -> None:
    if "\0" in value:
        raise ValueError(f"{field} must not contain NUL bytes")


def _validate_scan_root(path: str | Path) -> str:
    root = str(path)
    if "\0" in root:
        raise ScanRootError("Scan root path must not contain NUL bytes")

    root_path = Path(root)
    if not root_path.is_absolute():
        raise ScanRootError(f"Scan root path must be absolute: {root}")
    if not root_path.is_dir():
        raise ScanRootError(f"Scan root path does not refer to a directory: {root}")
    return _normalize_root(root)


def _row_to_scan_root(row: sqlite3.Row) -> ScanRoot:
    return ScanRoot(
        path=row["path"],
        created_at_unix=row["created_at_unix"],
        last_scanned_at_unix=row["last_scanned_at_unix"],
    )


def _row_to_audiobook(row: sqlite3.Row) -> Audiobook:
    return Audiobook(
        id=row["id"],
        scan_root=row["scan_root"],
        name=row["name"],
        full_path=row["full_path"],
        completeness=row["completeness"],
        default_order=row["default_order"],
        selected_file=row["selected_file"],
        created_at_unix=row["created_at_unix"],
    )


def _row_to_file(row: sqlite3.Row) -> AudiobookFile:
    return AudiobookFile(
        id=row["id"],
        audiobook_id=row["audiobook_id"],
        name=row["name"],
        full_path=row["full_path"],
        position=row["position"],
        length_ms=row["length_ms"],
        seek_position_ms=row["seek_position_ms"],
        fingerprint=row["fingerprint"],
        completeness=row["completeness"],
        file_exists=bool(row["file_exists"]),
        created_at_unix=row["created_at_unix"],
    )
