"""Translation history manager.

History is a JSON list of entries kept newest-first under a single storage key and capped at a
fixed number of items. Like the cache, history is best-effort: failures are logged and reported
through return values, never raised to the caller.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import TYPE_CHECKING, Any, ClassVar

from core.cache.storage import StorageError, StorageFullError
from models.history_models import HistoryEntry
from models.language_models import get_language_by_label, get_language_by_value
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.cache.storage import KeyValueStorage
    from models.config_models import Config
    from models.history_models import HistoryEntryData

__all__: list[str] = ["HistoryManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _resolve_code(code: str, label: str) -> str | None:
    if code:
        return code
    lang = get_language_by_label(label) or get_language_by_value(label)
    return lang.value if lang is not None else None


def _resolve_label(label: str, code: str) -> str:
    if label:
        return label
    lang = get_language_by_value(code)
    return lang.label if lang is not None else ""


class HistoryManager:
    """Stores completed translations.

    Attributes:
        STORAGE_KEY (ClassVar[str]): Storage key holding the history list.
        REQUIRED_FIELDS (ClassVar[tuple[str, ...]]): camelCase fields every stored entry must carry.
    """

    STORAGE_KEY: ClassVar[str] = "translationHistory"
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "id",
        "timestamp",
        "sourceLanguage",
        "targetLanguage",
        "sourceText",
        "targetText",
    )

    def __init__(
        self,
        config: Config,
        storage: KeyValueStorage,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the history manager.

        Args:
            config (Config): Application configuration (HISTORY section).
            storage (KeyValueStorage): Shared key-value storage.
            clock (Callable[[], float]): Returns the current time in epoch seconds.
        """
        self._storage: KeyValueStorage = storage
        self._clock: Callable[[], float] = clock
        self.max_items: int = max(1, config.HISTORY.MAX_ITEMS)

    def _is_valid_item(self, item: Any) -> bool:
        return isinstance(item, dict) and all(item.get(name) for name in self.REQUIRED_FIELDS)

    def _load(self) -> list[HistoryEntry]:
        raw: str | None = self._storage.get_item(self.STORAGE_KEY)
        if raw is None:
            return []
        try:
            payload: Any = json.loads(raw)
            if not isinstance(payload, list):
                msg: str = f"expected a list, got {type(payload).__name__}"
                raise TypeError(msg)
        except (json.JSONDecodeError, TypeError) as err:
            logger.error("Error reading history, clearing corrupted data: %s", err)
            self._storage.remove_item(self.STORAGE_KEY)
            return []

        entries: list[HistoryEntry] = []
        for item in payload:
            if not self._is_valid_item(item):
                logger.debug("Skipping invalid history item: %r", item)
                continue
            try:
                entry: HistoryEntry = HistoryEntry.from_dict(item)
            except (KeyError, TypeError, ValueError) as err:
                logger.debug("Skipping undecodable history item: %s", err)
                continue
            entries.append(entry)
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    def _save(self, entries: list[HistoryEntry]) -> None:
        self._storage.set_item(
            self.STORAGE_KEY,
            json.dumps([entry.to_dict() for entry in entries], ensure_ascii=False),
        )

    async def fetch_history(self) -> list[HistoryEntry]:
        """Return valid entries, newest first. A corrupted payload is removed."""
        try:
            return self._load()
        except StorageError as err:
            logger.error("Error reading history: %s", err)
            return []

    async def append_entry(self, data: HistoryEntryData) -> str:
        """Add a translation to the front of the history.

        Language codes are derived from the labels when omitted and vice versa. When the storage is
        full, only the newest half of the history is kept and the write is retried once.

        Args:
            data (HistoryEntryData): Languages and texts of the completed translation.

        Returns:
            str: The new entry id, or an empty string if the entry was invalid or could not be saved.
        """
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            source_language=_resolve_label(data.source_language, data.source_language_code),
            target_language=_resolve_label(data.target_language, data.target_language_code),
            source_text=data.source_text,
            target_text=data.target_text,
            timestamp=int(self._clock() * 1000),
            is_favorite=False,
            source_language_code=_resolve_code(data.source_language_code, data.source_language),
            target_language_code=_resolve_code(data.target_language_code, data.target_language),
        )
        if not entry.is_complete():
            logger.error("Attempted to add invalid history entry: %r", entry)
            return ""

        try:
            current: list[HistoryEntry] = self._load()
        except StorageError as err:
            logger.error("Error reading history before append: %s", err)
            return ""

        updated: list[HistoryEntry] = [entry, *current][: self.max_items]
        try:
            self._save(updated)
        except StorageFullError as err:
            logger.warning("History storage full, dropping older entries: %s", err)
            half: int = self.max_items // 2
            if len(current) <= half:
                return ""
            try:
                self._save([entry, *current[:half]])
            except StorageError as retry_err:
                logger.error("Error during history cleanup: %s", retry_err)
                return ""
            logger.info("Cleaned up history and saved new entry")
        except StorageError as err:
            logger.error("Error saving history: %s", err)
            return ""

        logger.debug("History entry added: %s", entry.id)
        return entry.id

    async def toggle_favorite(self, entry_id: str) -> bool:
        """Flip the favorite flag of an entry.

        Returns:
            bool: True if the entry was found and saved.
        """
        try:
            entries: list[HistoryEntry] = self._load()
            for entry in entries:
                if entry.id == entry_id:
                    entry.is_favorite = not entry.is_favorite
                    self._save(entries)
                    return True
        except StorageError as err:
            logger.error("Error toggling favorite: %s", err)
            return False
        logger.warning("History item not found for toggling favorite: %s", entry_id)
        return False

    async def clear_history(self) -> None:
        try:
            self._storage.remove_item(self.STORAGE_KEY)
        except StorageError as err:
            logger.error("Error clearing history: %s", err)
            return
        logger.info("Translation history cleared")
