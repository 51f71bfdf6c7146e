"""Data models for LingoFlow.

This package contains dataclass definitions for configuration, translation requests and outcomes,
cache and history payloads, speech data and the supported-language catalog.
"""

from __future__ import annotations

from models.cache_models import CacheEntry, CacheEntryFormatError, CacheStatistics
from models.config_models import Config
from models.history_models import HistoryEntry, HistoryEntryData
from models.language_models import (
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    SUPPORTED_LANGUAGES,
    Language,
    get_language_by_label,
    get_language_by_value,
    language_label,
)
from models.speech_models import RecognitionSegment, RecordingState, Voice
from models.translation_models import (
    Notification,
    NotificationLevel,
    OrchestratorSnapshot,
    OrchestratorState,
    OutcomeSource,
    TranslationOutcome,
    TranslationRequest,
)

__all__: list[str] = [
    "DEFAULT_SOURCE_LANGUAGE",
    "DEFAULT_TARGET_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "CacheEntry",
    "CacheEntryFormatError",
    "CacheStatistics",
    "Config",
    "HistoryEntry",
    "HistoryEntryData",
    "Language",
    "Notification",
    "NotificationLevel",
    "OrchestratorSnapshot",
    "OrchestratorState",
    "OutcomeSource",
    "RecognitionSegment",
    "RecordingState",
    "TranslationOutcome",
    "TranslationRequest",
    "Voice",
    "get_language_by_label",
    "get_language_by_value",
    "language_label",
]
