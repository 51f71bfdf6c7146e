"""Translation cache package.

Provides the key-value storage backends and the TTL-based translation cache built on them.
"""

from __future__ import annotations

from core.cache.manager import TranslationCacheManager
from core.cache.storage import KeyValueStorage, MemoryStorage, SqliteStorage, StorageError, StorageFullError

__all__: list[str] = [
    "KeyValueStorage",
    "MemoryStorage",
    "SqliteStorage",
    "StorageError",
    "StorageFullError",
    "TranslationCacheManager",
]
