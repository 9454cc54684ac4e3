"""
Tests for storage media.
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Any

import pytest

from sitecache.exceptions import StorageError
from sitecache.storage import MemoryStorage, SQLiteStorage, StorageMedium


@pytest.fixture
def sqlite_storage(temp_dir: Path) -> SQLiteStorage:
    storage = SQLiteStorage(temp_dir / "nested" / "items.db")
    yield storage
    storage.close()


@pytest.fixture(params=["memory", "sqlite"])
def storage(request: pytest.FixtureRequest, sqlite_storage: SQLiteStorage) -> StorageMedium:
    if request.param == "memory":
        return MemoryStorage()
    return sqlite_storage


class TestMediumPrimitives:
    """Test get/set/remove/keys on every medium."""

    def test_set_and_get(self, storage: StorageMedium) -> None:
        storage.set_item("a", "1")
        assert storage.get_item("a") == "1"

    def test_missing_key(self, storage: StorageMedium) -> None:
        assert storage.get_item("missing") is None

    def test_overwrite(self, storage: StorageMedium) -> None:
        storage.set_item("a", "1")
        storage.set_item("a", "2")
        assert storage.get_item("a") == "2"
        assert storage.keys() == ["a"]

    def test_remove(self, storage: StorageMedium) -> None:
        storage.set_item("a", "1")
        storage.remove_item("a")
        storage.remove_item("never-set")
        assert storage.get_item("a") is None

    def test_keys(self, storage: StorageMedium) -> None:
        storage.set_item("x:1", "a")
        storage.set_item("y:2", "b")
        assert sorted(storage.keys()) == ["x:1", "y:2"]

    def test_is_available(self, storage: StorageMedium) -> None:
        assert storage.is_available() is True


class TestSQLiteStorage:
    """Test SQLite-specific behavior."""

    def test_is_available_has_no_side_effects(self, temp_dir: Path) -> None:
        db_path = temp_dir / "a" / "b" / "items.db"
        storage = SQLiteStorage(db_path)
        assert storage.is_available() is True
        assert not db_path.parent.exists()

    def test_existing_database_is_available(self, temp_dir: Path) -> None:
        db_path = temp_dir / "items.db"
        first = SQLiteStorage(db_path)
        first.set_item("k", "v")
        first.close()

        assert SQLiteStorage(db_path).is_available() is True

    def test_empty_file_is_available(self, temp_dir: Path) -> None:
        db_path = temp_dir / "items.db"
        db_path.touch()
        assert SQLiteStorage(db_path).is_available() is True

    def test_non_database_file_is_unavailable(self, temp_dir: Path) -> None:
        db_path = temp_dir / "items.db"
        db_path.write_bytes(b"this is not a sqlite database, just some text" * 20)
        storage = SQLiteStorage(db_path)

        assert storage.is_available() is False
        assert db_path.read_bytes().startswith(b"this is not")

    def test_failed_open_closes_connection(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        db_path = temp_dir / "items.db"
        db_path.write_bytes(b"garbage" * 100)
        opened: list[sqlite3.Connection] = []
        connect = sqlite3.connect

        def tracking_connect(*args: Any, **kwargs: Any) -> sqlite3.Connection:
            conn = connect(*args, **kwargs)
            opened.append(conn)
            return conn

        monkeypatch.setattr(sqlite3, "connect", tracking_connect)
        storage = SQLiteStorage(db_path)

        with pytest.raises(StorageError) as exc_info:
            storage.open()

        assert exc_info.value.context["path"] == str(db_path)
        assert len(opened) == 1
        with pytest.raises(sqlite3.ProgrammingError):
            opened[0].execute("SELECT 1")

    def test_persists_across_connections(self, temp_dir: Path) -> None:
        db_path = temp_dir / "items.db"
        first = SQLiteStorage(db_path)
        first.set_item("k", "v")
        first.close()

        second = SQLiteStorage(db_path)
        assert second.get_item("k") == "v"
        second.close()

    def test_close_is_idempotent(self, sqlite_storage: SQLiteStorage) -> None:
        sqlite_storage.open()
        sqlite_storage.close()
        sqlite_storage.close()

    def test_reopens_lazily_after_close(self, sqlite_storage: SQLiteStorage) -> None:
        sqlite_storage.set_item("k", "v")
        sqlite_storage.close()
        assert sqlite_storage.get_item("k") == "v"

    def test_directory_in_place_of_file_is_unavailable(self, temp_dir: Path) -> None:
        db_path = temp_dir / "is_a_dir"
        db_path.mkdir()
        storage = SQLiteStorage(db_path)
        assert storage.is_available() is False

        with pytest.raises(StorageError) as exc_info:
            storage.open()
        assert exc_info.value.context["path"] == str(db_path)

    @pytest.mark.skipif(
        os.name == "nt" or os.geteuid() == 0, reason="permission bits not enforced"
    )
    def test_read_only_directory_is_unavailable(self, temp_dir: Path) -> None:
        locked = temp_dir / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            assert SQLiteStorage(locked / "items.db").is_available() is False
        finally:
            locked.chmod(0o700)
