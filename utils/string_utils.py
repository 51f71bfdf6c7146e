from __future__ import annotations

import hashlib
import unicodedata
from typing import Final

__all__: list[str] = ["StringUtils"]

DIGEST_SIZE: Final[int] = 8


class StringUtils:
    """Utility class for the string handling shared by the cache, history and orchestrator."""

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return the value as a string, or an empty string if None.

        Note: Does not strip, callers decide whether surrounding whitespace matters.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def normalize_text(text: str) -> str:
        """Normalize text using Unicode NFC normalization."""
        return unicodedata.normalize("NFC", StringUtils.ensure_str(text))

    @staticmethod
    def generate_text_digest(source_text: str) -> str:
        """Generate a stable digest for a source text.

        The text is NFC-normalized first so that visually identical input maps to the same key.
        The digest carries no salt and therefore stays stable across process restarts.

        Args:
            source_text (str): Source text to digest.

        Returns:
            str: 16 hex characters (8-byte BLAKE2b digest).
        """
        normalized: str = StringUtils.normalize_text(source_text)
        return hashlib.blake2b(normalized.encode("utf-8"), digest_size=DIGEST_SIZE).hexdigest()
