"""Translation cache manager.

Stores translation results in a key-value storage with a time-to-live. Expired and corrupted
entries are purged lazily when read and opportunistically after writes, with the full scan
rate-limited to once per cleanup interval unless forced. The cache is best-effort: every storage
failure is logged and treated as a miss or a dropped write.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, ClassVar

from core.cache.storage import StorageError, StorageFullError
from models.cache_models import CacheEntry, CacheEntryFormatError, CacheStatistics
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.cache.storage import KeyValueStorage
    from models.config_models import Config
    from models.translation_models import TranslationRequest

__all__: list[str] = ["TranslationCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

_MS_PER_DAY: int = 24 * 60 * 60 * 1000


class TranslationCacheManager:
    """Manager for the translation cache.

    Entries live under `<prefix><source_lang>_<target_lang>_<digest>` and hold
    `{"targetText": ..., "timestamp": ...}`. The reserved key `<prefix>lastCleanup` records the
    time of the last full scan.

    Attributes:
        LAST_CLEANUP_SUFFIX (ClassVar[str]): Suffix of the reserved last-cleanup key.
    """

    LAST_CLEANUP_SUFFIX: ClassVar[str] = "lastCleanup"

    def __init__(
        self,
        config: Config,
        storage: KeyValueStorage,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache manager.

        Args:
            config (Config): Application configuration (CACHE section).
            storage (KeyValueStorage): Backing storage, shared with other components.
            clock (Callable[[], float]): Returns the current time in epoch seconds.
        """
        self.config: Config = config
        self._storage: KeyValueStorage = storage
        self._clock: Callable[[], float] = clock
        self.prefix: str = config.CACHE.KEY_PREFIX
        self.ttl_ms: int = int(config.CACHE.TTL_DAYS * _MS_PER_DAY)
        self.cleanup_interval_ms: int = int(config.CACHE.CLEANUP_INTERVAL_SEC * 1000)
        logger.debug(
            "TranslationCacheManager created (prefix: '%s', ttl: %d ms, cleanup interval: %d ms)",
            self.prefix,
            self.ttl_ms,
            self.cleanup_interval_ms,
        )

    @property
    def last_cleanup_key(self) -> str:
        return f"{self.prefix}{self.LAST_CLEANUP_SUFFIX}"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def build_cache_key(self, request: TranslationRequest) -> str:
        """Derive the storage key for a request.

        Args:
            request (TranslationRequest): The translation request.

        Returns:
            str: Deterministic key, independent of process and run.
        """
        digest: str = StringUtils.generate_text_digest(request.text)
        return f"{self.prefix}{request.source_lang}_{request.target_lang}_{digest}"

    def _is_cache_key(self, key: str) -> bool:
        return key.startswith(self.prefix) and key != self.last_cleanup_key

    def _remove_quietly(self, key: str) -> bool:
        try:
            self._storage.remove_item(key)
        except StorageError as err:
            logger.error("Error removing cache entry '%s': %s", key, err)
            return False
        return True

    async def get(self, request: TranslationRequest) -> str | None:
        """Look up a cached translation.

        Expired or malformed entries found under the request's key are removed.

        Args:
            request (TranslationRequest): The translation request.

        Returns:
            str | None: The cached translation, or None on a miss.
        """
        if request.is_empty:
            return None

        key: str = self.build_cache_key(request)
        try:
            raw: str | None = self._storage.get_item(key)
        except StorageError as err:
            logger.error("Error searching translation cache: %s", err)
            return None

        if raw is None:
            logger.debug("Cache miss for key: %s", key)
            return None

        try:
            entry: CacheEntry = CacheEntry.parse(raw)
        except CacheEntryFormatError as err:
            logger.warning("Removing corrupted cache entry '%s': %s", key, err)
            self._remove_quietly(key)
            return None

        if entry.is_expired(self._now_ms(), self.ttl_ms):
            logger.debug("Cache entry expired for key: %s", key)
            self._remove_quietly(key)
            return None

        if entry.source_text is not None and entry.source_text != StringUtils.normalize_text(request.text):
            # Same digest, different text. The entry stays valid for its own source text.
            logger.info("Cache key collision detected for key: %s", key)
            return None

        logger.debug("Cache hit for key: %s", key)
        return entry.target_text

    async def put(self, request: TranslationRequest, translation: str) -> None:
        """Store a translation with the current timestamp.

        When the storage is full, expired entries are force-purged and the write is retried once.
        If the retry fails too, the write is dropped.

        Args:
            request (TranslationRequest): The translation request.
            translation (str): The translated text.
        """
        if request.is_empty:
            return

        key: str = self.build_cache_key(request)
        value: str = CacheEntry(
            target_text=translation,
            timestamp=self._now_ms(),
            source_text=StringUtils.normalize_text(request.text),
        ).dump()

        try:
            self._storage.set_item(key, value)
        except StorageFullError as err:
            logger.warning("Cache storage full, forcing cleanup before retry: %s", err)
            await self.cleanup(force=True)
            try:
                self._storage.set_item(key, value)
            except StorageError as retry_err:
                logger.error("Retry failed. Could not cache translation: %s", retry_err)
                return
            logger.debug("Translation cached after cleanup for key: %s", key)
            return
        except StorageError as err:
            logger.error("Error registering translation cache: %s", err)
            return

        logger.debug("Translation cached for key: %s", key)
        await self.cleanup()

    def _read_last_cleanup(self) -> int:
        try:
            raw: str | None = self._storage.get_item(self.last_cleanup_key)
        except StorageError as err:
            logger.error("Error reading last cleanup time: %s", err)
            return 0
        try:
            return int(raw) if raw is not None else 0
        except ValueError:
            logger.warning("Ignoring invalid last cleanup value: %r", raw)
            return 0

    async def cleanup(self, *, force: bool = False) -> int:
        """Remove expired and unparseable entries.

        Args:
            force (bool): Run even if the cleanup interval has not elapsed.

        Returns:
            int: Number of removed entries. 0 when the scan was skipped.
        """
        now: int = self._now_ms()
        if not force and now - self._read_last_cleanup() < self.cleanup_interval_ms:
            return 0

        removed: int = 0
        try:
            keys: list[str] = self._storage.keys()
        except StorageError as err:
            logger.error("Error during cache cleanup: %s", err)
            return 0

        for key in keys:
            if not self._is_cache_key(key):
                continue
            try:
                raw: str | None = self._storage.get_item(key)
            except StorageError as err:
                logger.error("Error reading cache entry '%s' during cleanup: %s", key, err)
                continue
            if raw is None:
                continue
            try:
                expired: bool = CacheEntry.parse(raw).is_expired(now, self.ttl_ms)
            except CacheEntryFormatError:
                expired = True
            if expired and self._remove_quietly(key):
                removed += 1

        try:
            self._storage.set_item(self.last_cleanup_key, str(now))
        except StorageError as err:
            logger.error("Error recording cache cleanup time: %s", err)

        if removed:
            logger.info("Cache cleanup removed %d expired entries", removed)
        return removed

    async def clear(self) -> int:
        """Remove every cache entry.

        Returns:
            int: Number of removed entries.
        """
        removed: int = 0
        try:
            keys: list[str] = self._storage.keys()
        except StorageError as err:
            logger.error("Error clearing translation cache: %s", err)
            return 0
        for key in keys:
            if self._is_cache_key(key) and self._remove_quietly(key):
                removed += 1
        logger.info("Translation cache cleared (%d entries)", removed)
        return removed

    async def get_cache_statistics(self) -> CacheStatistics:
        """Collect cache statistics without modifying the cache."""
        stats = CacheStatistics()
        now: int = self._now_ms()
        try:
            keys: list[str] = self._storage.keys()
            for key in keys:
                if not self._is_cache_key(key):
                    continue
                raw: str | None = self._storage.get_item(key)
                if raw is None:
                    continue
                stats.total_entries += 1
                try:
                    entry: CacheEntry = CacheEntry.parse(raw)
                except CacheEntryFormatError:
                    stats.corrupted_entries += 1
                    continue
                if entry.is_expired(now, self.ttl_ms):
                    stats.expired_entries += 1
                if stats.oldest_timestamp is None or entry.timestamp < stats.oldest_timestamp:
                    stats.oldest_timestamp = entry.timestamp
                if stats.newest_timestamp is None or entry.timestamp > stats.newest_timestamp:
                    stats.newest_timestamp = entry.timestamp
        except StorageError as err:
            logger.error("Error getting cache statistics: %s", err)
            return CacheStatistics()

        last_cleanup: int = self._read_last_cleanup()
        stats.last_cleanup = last_cleanup or None
        return stats
