"""Configuration data models for the translator settings file.

Each data class mirrors one section of the INI file. Field names are the INI keys,
field types drive how the loader coerces the raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Cache",
    "Config",
    "General",
    "History",
    "HttpEngine",
    "Offline",
    "Speech",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    VERSION: str = ""
    SCRIPT_NAME: str = ""
    LOG_FILE: str = ""
    STORAGE_PATH: str = "lingoflow.db"


@dataclass
class Translation:
    ENGINE: list[str] = field(default_factory=lambda: ["http"])
    SOURCE_LANGUAGE: str = "en"
    TARGET_LANGUAGE: str = "es"
    DEBOUNCE_SEC: float = 0.5


@dataclass
class Cache:
    KEY_PREFIX: str = "translationCache_"
    TTL_DAYS: float = 7.0
    CLEANUP_INTERVAL_SEC: float = 3600.0
    MAX_BYTES: int = 5 * 1024 * 1024


@dataclass
class History:
    MAX_ITEMS: int = 50


@dataclass
class Offline:
    MODE_ENABLED: bool = False
    ASSUME_ONLINE: bool = True


@dataclass
class Speech:
    OUTPUT_ENABLED: bool = False
    GOOGLE_SUFFIX: str = "com"
    VOLUME: int = 100


@dataclass
class HttpEngine:
    URL: str = "http://127.0.0.1:5000/translate"
    API_KEY: str = ""
    TIMEOUT: float = 10.0


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    CACHE: Cache = field(default_factory=Cache)
    HISTORY: History = field(default_factory=History)
    OFFLINE: Offline = field(default_factory=Offline)
    SPEECH: Speech = field(default_factory=Speech)
    HTTP_ENGINE: HttpEngine = field(default_factory=HttpEngine)
