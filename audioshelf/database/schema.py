"""Database schema definition."""

import sqlite3

SCHEMA_SQL = """
-- Key/value store for application state (e.g. the last opened audiobook)
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- User-registered directories to scan
CREATE TABLE IF NOT EXISTS scan_roots (
    path TEXT PRIMARY KEY,
    created_at_unix REAL NOT NULL,
    created_at INTEGER NOT NULL,
    last_scanned_at_unix REAL,
    last_scanned_at INTEGER
);

-- One row per directory that directly contains audio
CREATE TABLE IF NOT EXISTS audiobooks (
    id INTEGER PRIMARY KEY,
    scan_root TEXT NOT NULL REFERENCES scan_roots(path) ON DELETE CASCADE,
    name TEXT NOT NULL,
    full_path TEXT NOT NULL UNIQUE,
    completeness INTEGER NOT NULL DEFAULT 0,
    default_order INTEGER NOT NULL DEFAULT 0,
    selected_file TEXT,
    created_at_unix REAL NOT NULL,
    created_at INTEGER NOT NULL
);

-- Audio files of an audiobook, with playback progress
CREATE TABLE IF NOT EXISTS audiobook_files (
    id INTEGER PRIMARY KEY,
    audiobook_id INTEGER NOT NULL REFERENCES audiobooks(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    full_path TEXT NOT NULL,
    length_ms INTEGER,
    seek_position_ms INTEGER,
    fingerprint TEXT,
    position INTEGER NOT NULL,
    completeness INTEGER NOT NULL DEFAULT 0,
    file_exists BOOLEAN NOT NULL DEFAULT TRUE,
    created_at_unix REAL NOT NULL,
    created_at INTEGER NOT NULL,
    UNIQUE(audiobook_id, full_path)
);

CREATE INDEX IF NOT EXISTS idx_audiobooks_root ON audiobooks(scan_root);
CREATE INDEX IF NOT EXISTS idx_audiobook_files_audiobook ON audiobook_files(audiobook_id, position);
CREATE INDEX IF NOT EXISTS idx_audiobook_files_path ON audiobook_files(full_path);
CREATE INDEX IF NOT EXISTS idx_audiobook_files_missing
    ON audiobook_files(audiobook_id) WHERE file_exists = FALSE;
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create schema and run migrations."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='audiobook_files'"
    )
    files_exists = cursor.fetchone() is not None

    if files_exists:
        migrate_add_fingerprint_column(conn)

    conn.executescript(SCHEMA_SQL)
    conn.commit()


def migrate_add_fingerprint_column(conn: sqlite3.Connection) -> None:
    """Add the fingerprint column to catalogs created before change detection existed."""
    cursor = conn.execute("PRAGMA table_info(audiobook_files)")
    existing_columns = {row[1] for row in cursor.fetchall()}

    if "fingerprint" not in existing_columns:
        conn.execute("ALTER TABLE audiobook_files ADD COLUMN fingerprint TEXT")
        conn.commit()
