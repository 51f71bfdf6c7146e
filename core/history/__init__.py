"""Translation history package."""

from __future__ import annotations

from core.history.manager import HistoryManager

__all__: list[str] = ["HistoryManager"]
