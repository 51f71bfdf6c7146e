# ruff: noqa: BLE001
"""Key-value storage backends.

The cache, the history and the offline-mode flag persist plain string values under string keys.
`SqliteStorage` keeps them in an SQLite database in WAL mode so they survive restarts,
`MemoryStorage` keeps them in a dict. Both can enforce a byte quota and report it as
`StorageFullError`, which the callers use to trigger eviction.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = [
    "KeyValueStorage",
    "MemoryStorage",
    "SqliteStorage",
    "StorageError",
    "StorageFullError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class StorageError(Exception):
    """An error occurred while reading or writing the key-value storage."""


class StorageFullError(StorageError):
    """The storage quota would be exceeded by the write."""


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStorage(ABC):
    """Abstract string key-value storage."""

    def __init__(self, max_bytes: int = 0) -> None:
        """Initialize the storage.

        Args:
            max_bytes (int): Quota over all keys and values in UTF-8 bytes. 0 or negative disables the quota.
        """
        self.max_bytes: int = max_bytes

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value.

        Raises:
            StorageFullError: If the quota would be exceeded.
            StorageError: If the backend fails.
        """
        raise NotImplementedError

    @abstractmethod
    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> list[str]:
        """Return a snapshot of all keys."""
        raise NotImplementedError

    @abstractmethod
    def used_bytes(self) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)

    def close(self) -> None:
        """Release backend resources."""

    def _check_quota(self, key: str, value: str, current_size: int) -> None:
        if self.max_bytes <= 0:
            return
        projected: int = self.used_bytes() - current_size + _entry_size(key, value)
        if projected > self.max_bytes:
            msg: str = f"Storage quota exceeded ({projected} > {self.max_bytes} bytes)"
            raise StorageFullError(msg)


class MemoryStorage(KeyValueStorage):
    """In-memory storage, lost when the process exits."""

    def __init__(self, max_bytes: int = 0) -> None:
        super().__init__(max_bytes)
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        current: str | None = self._data.get(key)
        self._check_quota(key, value, _entry_size(key, current) if current is not None else 0)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def used_bytes(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._data.items())


class SqliteStorage(KeyValueStorage):
    """SQLite-backed persistent storage using WAL mode."""

    def __init__(self, db_path: str | Path, max_bytes: int = 0) -> None:
        """Open (or create) the database.

        Args:
            db_path (str | Path): Database file path. ':memory:' is accepted.
            max_bytes (int): Quota in UTF-8 bytes over keys and values. 0 disables it.

        Raises:
            StorageError: If the database cannot be opened.
        """
        super().__init__(max_bytes)
        self._db_path: str = str(db_path)
        try:
            self._db_conn: sqlite3.Connection | None = sqlite3.connect(self._db_path, check_same_thread=False)
            self._db_conn.execute("PRAGMA journal_mode=WAL")
            self._db_conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            self._db_conn.commit()
            logger.info("Key-value storage opened: %s", self._db_path)
        except sqlite3.Error as err:
            msg: str = f"Storage initialization failed: {err}"
            logger.critical(msg)
            raise StorageError(msg) from err

    @property
    def _conn(self) -> sqlite3.Connection:
        if self._db_conn is None:
            msg = "Storage has been closed"
            raise StorageError(msg)
        return self._db_conn

    def get_item(self, key: str) -> str | None:
        try:
            row = self._conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as err:
            msg: str = f"Error reading key '{key}': {err}"
            raise StorageError(msg) from err
        return None if row is None else row[0]

    def set_item(self, key: str, value: str) -> None:
        current: str | None = self.get_item(key)
        self._check_quota(key, value, _entry_size(key, current) if current is not None else 0)
        try:
            self._conn.execute("INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)", (key, value))
            self._conn.commit()
        except sqlite3.OperationalError as err:
            # SQLITE_FULL surfaces as OperationalError("database or disk is full").
            if "full" in str(err).lower():
                raise StorageFullError(str(err)) from err
            msg: str = f"Error writing key '{key}': {err}"
            raise StorageError(msg) from err
        except sqlite3.Error as err:
            msg = f"Error writing key '{key}': {err}"
            raise StorageError(msg) from err

    def remove_item(self, key: str) -> None:
        try:
            self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            self._conn.commit()
        except sqlite3.Error as err:
            msg: str = f"Error removing key '{key}': {err}"
            raise StorageError(msg) from err

    def keys(self) -> list[str]:
        try:
            return [row[0] for row in self._conn.execute("SELECT key FROM kv_store").fetchall()]
        except sqlite3.Error as err:
            msg: str = f"Error listing keys: {err}"
            raise StorageError(msg) from err

    def used_bytes(self) -> int:
        try:
            row = self._conn.execute(
                "SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) FROM kv_store"
            ).fetchone()
        except sqlite3.Error as err:
            msg: str = f"Error computing storage size: {err}"
            raise StorageError(msg) from err
        return int(row[0])

    def clear(self) -> None:
        try:
            self._conn.execute("DELETE FROM kv_store")
            self._conn.commit()
        except sqlite3.Error as err:
            msg: str = f"Error clearing storage: {err}"
            raise StorageError(msg) from err

    def close(self) -> None:
        if self._db_conn is not None:
            try:
                self._db_conn.close()
                logger.info("Key-value storage closed")
            except Exception as err:
                logger.error("Error closing storage: %s", err)
            self._db_conn = None
