"""
Local item cache using SQLite.

Holds two kinds of rows:
- snapshot rows: the last item collection fetched from the remote source
- pending rows: items created locally that the remote has not seen yet

Writes are last-write-wins; there are no transaction guarantees across
refresh cycles.
"""

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from .errors import ScoutError
from .types import Item

logger = logging.getLogger(__name__)


class PersistenceError(ScoutError):
    """The local cache could not be read or written."""


class LocalItemCache:
    """
    SQLite-backed cache of items.

    A missing database file is created empty. A corrupt one raises
    PersistenceError on open or on first use.
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS items (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT,
                    name TEXT NOT NULL,
                    properties_json TEXT NOT NULL DEFAULT '{}',
                    pending INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_items_id
                ON items(id COLLATE NOCASE)
            """)
            self._conn.commit()
        except (sqlite3.DatabaseError, OSError) as e:
            raise PersistenceError(f"Cannot open item cache {self._db_path}: {e}") from e

    def _now(self) -> str:
        """Current timestamp in ISO format."""
        return datetime.now(timezone.utc).isoformat()

    def _row(self, item: Item, pending: bool, now: str) -> tuple:
        return (
            item.id,
            item.name,
            json.dumps(item.properties, ensure_ascii=False),
            1 if pending else 0,
            now,
        )

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def load_all(self) -> list[Item]:
        """
        Load every cached item, snapshot rows first, then pending rows.

        Raises:
            PersistenceError: If the database or a row is corrupt
        """
        try:
            with self._lock:
                cursor = self._conn.execute("""
                    SELECT id, name, properties_json, pending
                    FROM items
                    ORDER BY pending, seq
                """)
                rows = cursor.fetchall()
            items = []
            for row in rows:
                properties = json.loads(row["properties_json"])
                if not isinstance(properties, dict):
                    raise PersistenceError(
                        f"Item cache is corrupt: properties of {row['name']!r} "
                        f"are {type(properties).__name__}, not an object"
                    )
                items.append(Item(
                    name=row["name"],
                    id=row["id"],
                    properties=properties,
                    pending=bool(row["pending"]),
                ))
            return items
        except (sqlite3.DatabaseError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Item cache is corrupt: {e}") from e

    def count(self) -> int:
        """Count cached items of both kinds."""
        with self._lock:
            cursor = self._conn.execute("SELECT COUNT(*) FROM items")
            return cursor.fetchone()[0]

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def save_snapshot(self, items: Iterable[Item]) -> None:
        """Replace every snapshot row with items. Pending rows are kept."""
        now = self._now()
        rows = [self._row(item, False, now) for item in items]
        try:
            with self._lock:
                with self._conn:
                    self._conn.execute("DELETE FROM items WHERE pending = 0")
                    self._conn.executemany("""
                        INSERT INTO items (id, name, properties_json, pending, updated_at)
                        VALUES (?, ?, ?, ?, ?)
                    """, rows)
        except sqlite3.DatabaseError as e:
            raise PersistenceError(f"Cannot write item cache: {e}") from e
        logger.debug("Cached snapshot of %d items", len(rows))

    def add_pending(self, item: Item) -> None:
        """Store a locally created item until the remote reports it."""
        try:
            with self._lock:
                with self._conn:
                    self._conn.execute("""
                        INSERT INTO items (id, name, properties_json, pending, updated_at)
                        VALUES (?, ?, ?, ?, ?)
                    """, self._row(item, True, self._now()))
        except sqlite3.DatabaseError as e:
            raise PersistenceError(f"Cannot write item cache: {e}") from e

    def remove_by_id(self, id: str) -> bool:
        """
        Delete cached rows whose id matches, ignoring case.

        Returns:
            True if at least one row was deleted
        """
        try:
            with self._lock:
                with self._conn:
                    cursor = self._conn.execute("""
                        DELETE FROM items
                        WHERE id = ? COLLATE NOCASE
                    """, (id,))
            return cursor.rowcount > 0
        except sqlite3.DatabaseError as e:
            raise PersistenceError(f"Cannot write item cache: {e}") from e

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()
