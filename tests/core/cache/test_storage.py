"""Tests for the key-value storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.cache.storage import KeyValueStorage, MemoryStorage, SqliteStorage, StorageError, StorageFullError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(params=["memory", "sqlite"])
def storage(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[KeyValueStorage]:
    backend: KeyValueStorage
    if request.param == "memory":
        backend = MemoryStorage()
    else:
        backend = SqliteStorage(tmp_path / "kv.db")
    yield backend
    backend.close()


def test_set_get_remove(storage: KeyValueStorage) -> None:
    storage.set_item("a", "1")
    storage.set_item("b", "2")

    assert storage.get_item("a") == "1"
    assert sorted(storage.keys()) == ["a", "b"]

    storage.remove_item("a")

    assert storage.get_item("a") is None
    assert storage.keys() == ["b"]


def test_set_overwrites_value(storage: KeyValueStorage) -> None:
    storage.set_item("a", "1")
    storage.set_item("a", "22")

    assert storage.get_item("a") == "22"
    assert storage.used_bytes() == len("a") + len("22")


def test_remove_missing_key_is_noop(storage: KeyValueStorage) -> None:
    storage.remove_item("missing")

    assert storage.keys() == []


def test_clear_removes_everything(storage: KeyValueStorage) -> None:
    storage.set_item("a", "1")
    storage.set_item("b", "2")

    storage.clear()

    assert storage.keys() == []
    assert storage.used_bytes() == 0


def test_used_bytes_counts_utf8(storage: KeyValueStorage) -> None:
    storage.set_item("k", "héllo")

    assert storage.used_bytes() == 1 + len("héllo".encode())


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_quota_raises_storage_full(backend: str, tmp_path: Path) -> None:
    storage: KeyValueStorage
    if backend == "memory":
        storage = MemoryStorage(max_bytes=10)
    else:
        storage = SqliteStorage(tmp_path / "kv.db", max_bytes=10)
    storage.set_item("a", "12345")

    with pytest.raises(StorageFullError):
        storage.set_item("b", "123456789")

    assert storage.get_item("b") is None
    # Replacing an existing value only counts the difference.
    storage.set_item("a", "123456789")
    assert storage.get_item("a") == "123456789"
    storage.close()


def test_sqlite_persists_across_instances(tmp_path: Path) -> None:
    db_path: Path = tmp_path / "kv.db"
    first = SqliteStorage(db_path)
    first.set_item("offlineModeEnabled", "true")
    first.close()

    second = SqliteStorage(db_path)

    assert second.get_item("offlineModeEnabled") == "true"
    second.close()


def test_sqlite_raises_after_close(tmp_path: Path) -> None:
    storage = SqliteStorage(tmp_path / "kv.db")
    storage.close()

    with pytest.raises(StorageError):
        storage.get_item("a")


def test_sqlite_open_failure_raises_storage_error(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        SqliteStorage(tmp_path / "missing_dir" / "kv.db")
