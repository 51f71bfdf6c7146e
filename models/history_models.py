"""Models for translation history entries."""

from __future__ import annotations

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = ["HistoryEntry", "HistoryEntryData"]


@dataclass
class HistoryEntryData:
    """Fields supplied by the caller when appending to history.

    Attributes:
        source_language (str): Source language display label, e.g. 'English'.
        target_language (str): Target language display label, e.g. 'Spanish'.
        source_text (str): Text that was translated.
        target_text (str): Translation result.
        source_language_code (str): Source language code, e.g. 'en'.
        target_language_code (str): Target language code, e.g. 'es'.
    """

    source_language: str
    target_language: str
    source_text: str
    target_text: str
    source_language_code: str = ""
    target_language_code: str = ""


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class HistoryEntry(DataClassJsonMixin):
    """Stored history entry, serialized with camelCase keys."""

    id: str
    source_language: str
    target_language: str
    source_text: str
    target_text: str
    timestamp: int
    is_favorite: bool = False
    source_language_code: str | None = None
    target_language_code: str | None = None

    def is_complete(self) -> bool:
        return bool(
            self.id
            and self.timestamp
            and self.source_language
            and self.target_language
            and self.source_text
            and self.target_text
        )
