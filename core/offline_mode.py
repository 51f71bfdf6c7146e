"""Persisted offline-mode setting.

When enabled, translations are written to the cache and the cache is preferred over live calls.
The flag is stored as "true"/"false" in the shared key-value storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, TypeAlias

from core.cache.storage import StorageError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.cache.storage import KeyValueStorage

__all__: list[str] = ["OfflineModeListener", "OfflineModeSetting"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

OfflineModeListener: TypeAlias = "Callable[[bool], None]"


class OfflineModeSetting:
    """Observable, persisted offline-mode flag.

    Attributes:
        STORAGE_KEY (ClassVar[str]): Storage key holding the flag.
    """

    STORAGE_KEY: ClassVar[str] = "offlineModeEnabled"

    def __init__(self, storage: KeyValueStorage, *, default: bool = False) -> None:
        """Read the persisted flag.

        Args:
            storage (KeyValueStorage): Shared key-value storage.
            default (bool): Value used when nothing has been stored yet or the stored value is unreadable.
        """
        self._storage: KeyValueStorage = storage
        self._listeners: list[OfflineModeListener] = []
        self._enabled: bool = self._load(default)
        logger.debug("Offline mode setting loaded: %s", self._enabled)

    @staticmethod
    def _parse(value: str | None) -> bool | None:
        if value is None:
            return None
        normalized: str = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
        return None

    def _load(self, default: bool) -> bool:
        try:
            raw: str | None = self._storage.get_item(self.STORAGE_KEY)
        except StorageError as err:
            logger.error("Failed to read offline mode setting: %s", err)
            return default
        parsed: bool | None = self._parse(raw)
        if parsed is None:
            if raw is not None:
                logger.warning("Ignoring invalid offline mode value: %r", raw)
            return default
        return parsed

    @property
    def enabled(self) -> bool:
        return self._enabled

    def subscribe(self, listener: OfflineModeListener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            Callable[[], None]: Removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_enabled(self, value: bool) -> None:
        """Persist and apply a new value.

        A persistence failure is logged; the in-memory value changes regardless.
        """
        try:
            self._storage.set_item(self.STORAGE_KEY, "true" if value else "false")
        except StorageError as err:
            logger.error("Failed to persist offline mode setting: %s", err)
        self._apply(value)

    def on_external_change(self, key: str, new_value: str | None) -> None:
        """Handle a change made by another writer of the same storage.

        Args:
            key (str): Changed storage key. Other keys are ignored.
            new_value (str | None): New raw value, None when the key was removed.
        """
        if key != self.STORAGE_KEY:
            return
        parsed: bool | None = self._parse(new_value)
        self._apply(bool(parsed))

    def _apply(self, value: bool) -> None:
        if value == self._enabled:
            return
        self._enabled = value
        logger.info("Offline mode %s", "enabled" if value else "disabled")
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as err:  # noqa: BLE001
                logger.error("Offline mode listener raised an exception: %s", err)
