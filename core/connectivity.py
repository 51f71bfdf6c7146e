"""Connectivity monitor.

Tracks whether the host has network access. The status is read once from a probe at construction
and afterwards changes only through `update()`, which the host calls from its own network signals.
There is no polling.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = ["ConnectivityListener", "ConnectivityMonitor", "ConnectivityState"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ConnectivityListener: TypeAlias = "Callable[[bool], None]"


class ConnectivityState(StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"


class ConnectivityMonitor:
    """Observable online/offline status."""

    def __init__(self, probe: Callable[[], bool] | None = None, *, assume_online: bool = True) -> None:
        """Initialize the monitor.

        Args:
            probe (Callable[[], bool] | None): Returns the current host status. Called once, synchronously.
            assume_online (bool): Initial status when no probe is given or the probe fails.
        """
        self._listeners: list[ConnectivityListener] = []
        self._online: bool = assume_online
        if probe is not None:
            try:
                self._online = bool(probe())
            except Exception as err:  # noqa: BLE001
                logger.warning("Connectivity probe failed, assuming %s: %s", self.state, err)
        logger.debug("Connectivity monitor created (initial state: %s)", self.state)

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def state(self) -> ConnectivityState:
        return ConnectivityState.ONLINE if self._online else ConnectivityState.OFFLINE

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a transition listener.

        Args:
            listener (ConnectivityListener): Called with the new status on every transition.

        Returns:
            Callable[[], None]: Removes the listener. Safe to call more than once.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, is_online: bool) -> None:
        """Apply a host network signal. Listeners are notified only if the status changed."""
        if is_online == self._online:
            return
        self._online = is_online
        logger.info("Network status changed: %s", self.state)
        for listener in list(self._listeners):
            try:
                listener(is_online)
            except Exception as err:  # noqa: BLE001
                logger.error("Connectivity listener raised an exception: %s", err)

    def set_online(self) -> None:
        self.update(True)

    def set_offline(self) -> None:
        self.update(False)
