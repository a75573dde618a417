"""
DictionaryStore: SQLite-backed persistence for an encoder dictionary.

Lets a session be resumed: the stored strings, loaded in id order, seed
a new Encoder (and its peer decoder) so ids keep their meaning.

Provides:
- Ordered append of dictionary additions
- In-memory mode via :memory:
- JSON export/import of the string list
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator


class DictionaryStore:
    """SQLite-backed store of dictionary strings in id order.

    Attributes:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
        conn: SQLite connection (None until open() called or context entered).

    Example:
        >>> with DictionaryStore("session.db") as store:
        ...     encoder = Encoder(store.load())
        ...     blob = encoder.encode({"key": "value"})
        ...     store.append(encoder.dictionary.tokens()[store.token_count():])
    """

    _SCHEMA_SQL = """
        -- Dictionary strings; id is the dictionary id (0-based)
        CREATE TABLE IF NOT EXISTS tokens (
            id INTEGER PRIMARY KEY,
            token TEXT NOT NULL,
            created_at TEXT NOT NULL
        );
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialise DictionaryStore.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for
                in-memory database (fast, non-persistent).
        """
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get the database connection, raising if not connected."""
        if self._conn is None:
            raise RuntimeError(
                "DictionaryStore not connected. "
                "Use 'with store:' or call open()."
            )
        return self._conn

    @property
    def is_open(self) -> bool:
        """Check if the store connection is open."""
        return self._conn is not None

    @property
    def is_memory(self) -> bool:
        """Check if this is an in-memory database."""
        return self.db_path == ":memory:"

    def open(self) -> DictionaryStore:
        """Open the database connection and initialise schema.

        Returns:
            self for method chaining.

        Raises:
            RuntimeError: If already connected.
        """
        if self._conn is not None:
            raise RuntimeError("DictionaryStore already connected.")

        self._conn = sqlite3.connect(self.db_path)
        if not self.is_memory:
            self._conn.execute("PRAGMA journal_mode = WAL")
        self.conn.executescript(self._SCHEMA_SQL)
        self.conn.commit()
        return self

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> DictionaryStore:
        """Context manager entry - opens connection."""
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit - closes connection."""
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Context manager for a database transaction.

        Commits on success, rolls back on exception.

        Yields:
            SQLite cursor for executing statements.
        """
        cursor = self.conn.cursor()
        try:
            yield cursor
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cursor.close()

    def token_count(self) -> int:
        """Count stored strings.

        Returns:
            Number of strings, which is also the next id to be stored.
        """
        cursor = self.conn.execute("SELECT COUNT(*) FROM tokens")
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def load(self) -> list[str]:
        """Load all strings in id order, ready to seed an Encoder."""
        cursor = self.conn.execute("SELECT token FROM tokens ORDER BY id")
        return [row[0] for row in cursor]

    def append(self, tokens: Iterable[str]) -> int:
        """Append strings at the next ids, preserving their order.

        Args:
            tokens: Strings in the order they were interned.

        Returns:
            Number of strings appended.
        """
        now = datetime.now(timezone.utc).isoformat()
        count = 0
        with self.transaction() as cursor:
            next_id = self._count(cursor)
            for token in tokens:
                cursor.execute(
                    "INSERT INTO tokens (id, token, created_at) "
                    "VALUES (?, ?, ?)",
                    (next_id + count, token, now),
                )
                count += 1
        return count

    def clear(self) -> None:
        """Delete all stored strings."""
        with self.transaction() as cursor:
            cursor.execute("DELETE FROM tokens")

    def export(self, path: Path) -> int:
        """Export the strings to a JSON array file.

        Args:
            path: Destination file path.

        Returns:
            Number of strings exported.
        """
        tokens = self.load()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(tokens, indent=2))
        return len(tokens)

    def import_(self, path: Path) -> int:
        """Replace the stored strings with a JSON array file's contents.

        Args:
            path: Source file path.

        Returns:
            Number of strings imported.

        Raises:
            ValueError: If the file is not a JSON array of strings.
        """
        tokens = json.loads(path.read_text())
        if not isinstance(tokens, list) or not all(
            isinstance(t, str) for t in tokens
        ):
            raise ValueError(f"Expected a JSON array of strings in {path}")
        self.clear()
        return self.append(tokens)

    @staticmethod
    def _count(cursor: sqlite3.Cursor) -> int:
        cursor.execute("SELECT COUNT(*) FROM tokens")
        row = cursor.fetchone()
        return int(row[0]) if row else 0
