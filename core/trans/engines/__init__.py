"""Translation engine implementations.

This package contains concrete implementations of the TransInterface. Importing it registers every
engine under its distinguished name.

Modules:
- DeeplTranslation: Implementation for the DeepL translation service.
- HttpTranslation: Implementation for LibreTranslate-compatible HTTP endpoints.
"""

from core.trans.engines.trans_deepl import DeeplTranslation
from core.trans.engines.trans_http import HttpTranslation

__all__: list[str] = [
    "DeeplTranslation",
    "HttpTranslation",
]
