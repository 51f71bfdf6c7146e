"""Capability interfaces and exceptions for speech input and output.

Platform speech services are callback-driven and differ between hosts. The controllers depend only
on the two abstract backends defined here; each host supplies its own implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from models.speech_models import RecognitionSegment, Voice

__all__: list[str] = [
    "AudioSink",
    "RecognizerBackend",
    "SpeechAudioCaptureError",
    "SpeechError",
    "SpeechNetworkError",
    "SpeechNoSpeechDetectedError",
    "SpeechOfflineError",
    "SpeechPermissionDeniedError",
    "SpeechRecognitionError",
    "SpeechSynthesisError",
    "SpeechUnsupportedError",
    "SynthesizerBackend",
    "add_listener",
    "categorize_recognition_error",
]

T = TypeVar("T")


class SpeechError(Exception):
    """Base class for speech input and output errors."""


class SpeechUnsupportedError(SpeechError):
    """The platform offers no speech capability of the requested kind."""


class SpeechOfflineError(SpeechError):
    """Speech services require a network connection."""


class SpeechSynthesisError(SpeechError):
    """Playback of synthesized speech failed."""


class SpeechRecognitionError(SpeechError):
    """A recognition session was aborted by the recognizer.

    Attributes:
        code (str): Error code reported by the backend.
        DEFAULT_MESSAGE (ClassVar[str]): User-facing text for this category.
    """

    DEFAULT_MESSAGE: ClassVar[str] = "An unknown error occurred during speech recognition."

    def __init__(self, code: str = "", message: str | None = None) -> None:
        self.code: str = code
        super().__init__(message or self.DEFAULT_MESSAGE)


class SpeechNoSpeechDetectedError(SpeechRecognitionError):
    DEFAULT_MESSAGE: ClassVar[str] = "No speech detected. Please try again."


class SpeechPermissionDeniedError(SpeechRecognitionError):
    DEFAULT_MESSAGE: ClassVar[str] = "Permission denied. Please allow microphone access."


class SpeechAudioCaptureError(SpeechRecognitionError):
    DEFAULT_MESSAGE: ClassVar[str] = "Microphone error. Check permissions and hardware."


class SpeechNetworkError(SpeechRecognitionError):
    DEFAULT_MESSAGE: ClassVar[str] = "Network error during speech recognition."


_ERROR_CATEGORIES: dict[str, type[SpeechRecognitionError]] = {
    "no-speech": SpeechNoSpeechDetectedError,
    "not-allowed": SpeechPermissionDeniedError,
    "permission-denied": SpeechPermissionDeniedError,
    "service-not-allowed": SpeechPermissionDeniedError,
    "audio-capture": SpeechAudioCaptureError,
    "network": SpeechNetworkError,
}


def categorize_recognition_error(code: str) -> SpeechRecognitionError:
    """Map a backend error code onto its exception category.

    Args:
        code (str): Backend error code, e.g. 'no-speech'.

    Returns:
        SpeechRecognitionError: An instance of the matching subclass, or of the base class for unknown codes.
    """
    return _ERROR_CATEGORIES.get(code, SpeechRecognitionError)(code)


def add_listener(listeners: list[T], listener: T) -> Callable[[], None]:
    """Append a listener and return a callable that removes it again. Safe to call more than once."""
    listeners.append(listener)

    def remove() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return remove


class RecognizerBackend(ABC):
    """Speech-to-text capability of the host platform."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def start(
        self,
        lang: str,
        on_update: Callable[[list[RecognitionSegment]], None],
        on_error: Callable[[str], None],
        on_end: Callable[[], None],
    ) -> None:
        """Begin capturing audio.

        Args:
            lang (str): Recognition language code.
            on_update (Callable[[list[RecognitionSegment]], None]): Receives every result slot of the
                session each time any of them changes.
            on_error (Callable[[str], None]): Receives an error code; the session is over afterwards.
            on_end (Callable[[], None]): Called once when the session ends for any reason.
        """
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing. Pending results may still be delivered before `on_end`."""
        raise NotImplementedError


class SynthesizerBackend(ABC):
    """Text-to-speech capability of the host platform."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_voices(self) -> list[Voice]:
        """Return the voice catalog. Empty while the catalog is still loading."""
        raise NotImplementedError

    @abstractmethod
    async def wait_voices_ready(self) -> None:
        """Return once the voice catalog has been loaded."""
        raise NotImplementedError

    @abstractmethod
    async def speak(self, text: str, lang: str, voice: Voice | None) -> None:
        """Synthesize and play text, returning when playback ends.

        Args:
            text (str): Text to speak.
            lang (str): Language code of the text.
            voice (Voice | None): Voice to use, or None for the platform default.

        Raises:
            SpeechSynthesisError: If synthesis or playback fails.
        """
        raise NotImplementedError

    @abstractmethod
    def cancel(self) -> None:
        """Stop playback immediately. Safe to call when nothing is playing."""
        raise NotImplementedError

    def close(self) -> None:
        """Release synthesizer resources."""


class AudioSink(ABC):
    """Plays decoded PCM audio for synthesizers that produce raw audio."""

    @abstractmethod
    async def play(self, pcm: np.ndarray[Any, np.dtype[np.float32]], samplerate: int) -> None:
        """Play float32 PCM frames (mono or frames x channels), returning when playback ends."""
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        """Interrupt playback. Safe to call when idle."""
        raise NotImplementedError

    def close(self) -> None:
        """Release audio device resources."""
