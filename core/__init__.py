"""Core services and controllers for LingoFlow.

This package contains the translation orchestrator, shared data management, the cache and history
stores, connectivity and offline-mode tracking, translation engines and speech controllers.
"""

from core.orchestrator import TranslationOrchestrator
from core.shared_data import SharedData
from core.version import VERSION

__all__: list[str] = [
    "VERSION",
    "SharedData",
    "TranslationOrchestrator",
]
