"""Translation engine management and interfaces.

This package provides the live translation call through pluggable engine implementations,
an HTTP engine for LibreTranslate-compatible servers and DeepL.
"""

from core.trans.interface import (
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from core.trans.manager import TransManager

__all__: list[str] = [
    "NotSupportedLanguagesError",
    "Result",
    "TransInterface",
    "TransManager",
    "TranslateExceptionError",
    "TranslationError",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
]
