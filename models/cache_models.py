"""Models for translation cache data.

Defines the persisted cache entry payload and cache statistics.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "CacheEntry",
    "CacheEntryFormatError",
    "CacheStatistics",
]


class CacheEntryFormatError(ValueError):
    """A stored cache value could not be parsed into a CacheEntry."""


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheEntry(DataClassJsonMixin):
    """Persisted translation cache entry.

    Serialized as `{"targetText": ..., "timestamp": ...}`. `source_text` is written alongside so
    that a digest collision can be told apart from a real hit; entries without it are accepted.

    Attributes:
        target_text (str): Translated text.
        timestamp (int): Creation time in epoch milliseconds.
        source_text (str | None): Normalized source text the entry was created for.
    """

    target_text: str
    timestamp: int
    source_text: str | None = None

    def is_expired(self, now_ms: int, ttl_ms: int) -> bool:
        return now_ms - self.timestamp >= ttl_ms

    def dump(self) -> str:
        """Serialize the entry, omitting `sourceText` when it is unknown."""
        payload: dict[str, object] = self.to_dict()
        if self.source_text is None:
            payload.pop("sourceText", None)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def parse(cls, raw: str) -> CacheEntry:
        """Parse a stored value.

        Args:
            raw (str): JSON text read from storage.

        Returns:
            CacheEntry: The parsed entry.

        Raises:
            CacheEntryFormatError: If the value is not valid JSON or has the wrong shape.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as err:
            msg: str = f"Cache value is not valid JSON: {err}"
            raise CacheEntryFormatError(msg) from None

        if not isinstance(data, dict):
            msg = f"Cache value must be an object, got {type(data).__name__}"
            raise CacheEntryFormatError(msg)

        target_text = data.get("targetText")
        timestamp = data.get("timestamp")
        source_text = data.get("sourceText")
        if not isinstance(target_text, str):
            msg = "Cache value has no 'targetText' string"
            raise CacheEntryFormatError(msg)
        # bool is an int subclass and must not pass as a timestamp.
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            msg = "Cache value has no numeric 'timestamp'"
            raise CacheEntryFormatError(msg)
        if not math.isfinite(timestamp):
            msg = f"Cache value has a non-finite 'timestamp': {timestamp}"
            raise CacheEntryFormatError(msg)
        if source_text is not None and not isinstance(source_text, str):
            msg = "Cache value has a non-string 'sourceText'"
            raise CacheEntryFormatError(msg)

        return cls.from_dict({"targetText": target_text, "timestamp": int(timestamp), "sourceText": source_text})


@dataclass
class CacheStatistics:
    """Cache usage statistics.

    Attributes:
        total_entries (int): Number of cache entries (reserved keys excluded).
        expired_entries (int): Entries that are past their TTL but not yet purged.
        corrupted_entries (int): Entries that fail to parse.
        oldest_timestamp (int | None): Oldest entry creation time in epoch milliseconds.
        newest_timestamp (int | None): Newest entry creation time in epoch milliseconds.
        last_cleanup (int | None): Time of the last cleanup in epoch milliseconds.
    """

    total_entries: int = 0
    expired_entries: int = 0
    corrupted_entries: int = 0
    oldest_timestamp: int | None = None
    newest_timestamp: int | None = None
    last_cleanup: int | None = None
