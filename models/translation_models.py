"""Models for translation requests, outcomes and orchestrator state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__: list[str] = [
    "Notification",
    "NotificationLevel",
    "OrchestratorSnapshot",
    "OrchestratorState",
    "OutcomeSource",
    "TranslationOutcome",
    "TranslationRequest",
]


@dataclass(frozen=True)
class TranslationRequest:
    """A request to translate text between two languages.

    The text is trimmed on construction. Two requests with equal (text, source_lang, target_lang)
    are the same request for caching and deduplication.

    Attributes:
        text (str): Trimmed source text.
        source_lang (str): Source language code.
        target_lang (str): Target language code.
    """

    text: str
    source_lang: str
    target_lang: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", (self.text or "").strip())

    @property
    def is_empty(self) -> bool:
        return not self.text

    @property
    def is_identity(self) -> bool:
        return self.source_lang == self.target_lang


class OutcomeSource(StrEnum):
    """Which resolution strategy produced a result."""

    EMPTY = "empty"
    IDENTITY = "identity"
    CACHE = "cache"
    LIVE = "live"
    CACHE_MISS = "cache_miss"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class TranslationOutcome:
    """Terminal result of one committed resolution.

    Attributes:
        text (str): Text to display. Empty for empty input, offline misses and unavailability.
        source (OutcomeSource): Strategy that produced the text.
        request (TranslationRequest): The request the outcome belongs to.
        note (str): Optional user-visible remark, e.g. why nothing was translated.
    """

    text: str
    source: OutcomeSource
    request: TranslationRequest
    note: str = ""


class OrchestratorState(StrEnum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RESOLVING = "resolving"
    SETTLED = "settled"
    FAILED = "failed"


class NotificationLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A short user-facing message (toast).

    Attributes:
        title (str): Headline.
        description (str): Body text.
        level (NotificationLevel): Severity used by the front end for styling.
        retryable (bool): Whether resubmitting the input may succeed.
    """

    title: str
    description: str
    level: NotificationLevel = NotificationLevel.INFO
    retryable: bool = False


@dataclass(frozen=True)
class OrchestratorSnapshot:
    """Read-only view of the orchestrator handed to state listeners."""

    state: OrchestratorState
    source_text: str
    source_lang: str
    target_lang: str
    result_text: str
    generation: int
    outcome: TranslationOutcome | None = None
    error: str = ""
