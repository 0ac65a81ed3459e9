"""Database connection management."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Self

from audioshelf.errors import PersistenceError

from .schema import create_schema


class Database:
    """SQLite database connection wrapper with context manager support."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._transaction_depth = 0

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL").fetchone()
            create_schema(self._conn)
        return self._conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self.connect()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block of statements as one atomic unit.

        Nested calls join the outermost transaction; only the outermost block
        commits or rolls back. SQLite errors surface as PersistenceError.
        """
        conn = self.conn
        if self._transaction_depth > 0:
            self._transaction_depth += 1
            try:
                yield conn
            finally:
                self._transaction_depth -= 1
            return

        self._transaction_depth = 1
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Catalog update failed: {e}") from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._transaction_depth = 0

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
