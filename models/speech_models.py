"""Models shared by the speech input and output controllers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__: list[str] = ["RecognitionSegment", "RecordingState", "Voice"]


class RecordingState(StrEnum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"


@dataclass(frozen=True)
class RecognitionSegment:
    """One recognition result slot reported by a recognizer.

    Attributes:
        transcript (str): Recognized text for this slot.
        is_final (bool): False while the recognizer may still revise the slot.
    """

    transcript: str
    is_final: bool = False


@dataclass(frozen=True)
class Voice:
    """A synthesis voice offered by the platform.

    Attributes:
        name (str): Voice identifier.
        lang (str): BCP 47 language tag, e.g. 'es-ES'.
        is_default (bool): Whether the platform marks this voice as its default.
    """

    name: str
    lang: str
    is_default: bool = False

    def matches(self, language_code: str) -> bool:
        return bool(language_code) and self.lang.lower().startswith(language_code.lower())
