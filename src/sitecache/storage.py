"""
Storage media for the persistent backend.

A medium is a flat string-to-string store with get/set/remove/enumerate
primitives, in the manner of browser local storage:
- SQLiteStorage: durable, survives process restarts
- MemoryStorage: dict-backed, for tests and filesystem-less environments
"""

from __future__ import annotations

import os
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

from sitecache.exceptions import StorageError
from sitecache.logging import get_logger

logger = get_logger(__name__)


class StorageMedium(ABC):
    """Abstract string key/value medium."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Get the text stored under a key, or None."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store text under a key, replacing any previous value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """List every key currently stored."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the medium can be used. Must not modify anything."""
        ...

    def open(self) -> None:
        """Acquire resources. Optional."""

    def close(self) -> None:
        """Release resources. Optional."""


class MemoryStorage(StorageMedium):
    """Dict-backed medium. Contents live as long as the instance."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def is_available(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._items)


class SQLiteStorage(StorageMedium):
    """SQLite-backed medium.

    Items live in a single ``items`` table of the database file. The
    connection is opened lazily on first use, or eagerly by open().
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize SQLiteStorage.

        Args:
            db_path: Path to the database file.
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            conn: sqlite3.Connection | None = None
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(
                    str(self.db_path),
                    timeout=30.0,
                    isolation_level="DEFERRED",
                )
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS items (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)
                conn.commit()
            except (OSError, sqlite3.Error) as e:
                if conn is not None:
                    conn.close()
                raise StorageError(
                    "Failed to open SQLite storage",
                    context={"path": str(self.db_path), "error": str(e)},
                ) from e
            self._conn = conn
            logger.debug("SQLite storage opened", path=str(self.db_path))
        return self._conn

    def _execute(
        self, operation: str, sql: str, params: tuple[str, ...] = (), key: str | None = None
    ) -> list[tuple[str, ...]]:
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            if operation in ("set_item", "remove_item"):
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(
                "SQLite storage operation failed",
                context={"medium": "SQLiteStorage", "operation": operation, "key": key, "error": str(e)},
            ) from e
        return rows

    def get_item(self, key: str) -> str | None:
        rows = self._execute("get_item", "SELECT value FROM items WHERE key = ?", (key,), key)
        return rows[0][0] if rows else None

    def set_item(self, key: str, value: str) -> None:
        self._execute(
            "set_item",
            "INSERT INTO items (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
            key,
        )

    def remove_item(self, key: str) -> None:
        self._execute("remove_item", "DELETE FROM items WHERE key = ?", (key,), key)

    def keys(self) -> list[str]:
        return [row[0] for row in self._execute("keys", "SELECT key FROM items")]

    def is_available(self) -> bool:
        """Check the database file (or its nearest existing parent) is usable."""
        if self._conn is not None:
            return True

        if self.db_path.exists():
            if not (self.db_path.is_file() and os.access(self.db_path, os.R_OK | os.W_OK)):
                return False
            return self._is_database()

        parent = self.db_path.parent
        while not parent.exists():
            if parent == parent.parent:
                return False
            parent = parent.parent
        return parent.is_dir() and os.access(parent, os.W_OK)

    def _is_database(self) -> bool:
        """Open the existing file read-only and read its schema version."""
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True, timeout=30.0)
        except sqlite3.Error:
            return False
        try:
            conn.execute("PRAGMA schema_version").fetchone()
        except sqlite3.Error as e:
            logger.debug("SQLite storage file unreadable", path=str(self.db_path), error=str(e))
            return False
        finally:
            conn.close()
        return True

    def open(self) -> None:
        self._get_conn()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
