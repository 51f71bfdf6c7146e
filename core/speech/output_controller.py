"""Speech output controller.

Speaks result text through a synthesizer backend. Only one playback runs at a time; starting a new
one, or `cancel()`, stops the current one.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final

from core.speech.interface import SpeechOfflineError, SpeechSynthesisError, SpeechUnsupportedError, add_listener
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.connectivity import ConnectivityMonitor
    from core.speech.input_controller import SpeechInputController
    from core.speech.interface import SynthesizerBackend
    from models.speech_models import Voice

__all__: list[str] = ["SpeechOutputController"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

VOICE_CATALOG_TIMEOUT: Final[float] = 5.0


class SpeechOutputController:
    """Cancellable text-to-speech playback."""

    def __init__(
        self,
        synthesizer: SynthesizerBackend,
        connectivity: ConnectivityMonitor,
        input_controller: SpeechInputController | None = None,
    ) -> None:
        self._synthesizer: SynthesizerBackend = synthesizer
        self._connectivity: ConnectivityMonitor = connectivity
        self._input_controller: SpeechInputController | None = input_controller
        self._playback_task: asyncio.Task[None] | None = None
        self._generation: int = 0
        self._catalog_waited: bool = False
        self._error_listeners: list[Callable[[SpeechSynthesisError], None]] = []

    @property
    def is_speaking(self) -> bool:
        return self._playback_task is not None and not self._playback_task.done()

    @property
    def is_supported(self) -> bool:
        return self._synthesizer.is_available

    def set_input_controller(self, input_controller: SpeechInputController | None) -> None:
        self._input_controller = input_controller

    def on_error(self, listener: Callable[[SpeechSynthesisError], None]) -> Callable[[], None]:
        return add_listener(self._error_listeners, listener)

    @staticmethod
    def select_voice(voices: list[Voice], lang: str) -> Voice | None:
        """Pick the first voice whose language tag starts with `lang`.

        Returns:
            Voice | None: The matching voice, or None to let the platform use its default voice.
        """
        for voice in voices:
            if voice.matches(lang):
                return voice
        return None

    async def speak(self, text: str, lang: str) -> asyncio.Task[None] | None:
        """Start speaking text.

        Any playback in progress and any active recording are stopped first. The first call that finds
        an empty voice catalog waits for it to load; later calls never wait.

        Args:
            text (str): Text to speak. Blank text is ignored.
            lang (str): Language code of the text.

        Returns:
            asyncio.Task[None] | None: The playback task, or None if nothing was started.

        Raises:
            SpeechOfflineError: If the host is offline.
            SpeechUnsupportedError: If the platform has no speech synthesis.
        """
        if not self._connectivity.is_online:
            msg = "Text-to-speech requires an internet connection."
            raise SpeechOfflineError(msg)
        if not self._synthesizer.is_available:
            msg = "Text-to-speech is not supported on this platform."
            raise SpeechUnsupportedError(msg)
        if not text.strip():
            return None

        self.cancel()
        if self._input_controller is not None and self._input_controller.is_listening:
            self._input_controller.stop()
        generation: int = self._generation

        voices: list[Voice] = self._synthesizer.get_voices()
        if not voices and not self._catalog_waited:
            self._catalog_waited = True
            try:
                await asyncio.wait_for(self._synthesizer.wait_voices_ready(), timeout=VOICE_CATALOG_TIMEOUT)
            except TimeoutError:
                logger.warning("Voice catalog not ready, using the default voice")
            voices = self._synthesizer.get_voices()
            if generation != self._generation:
                logger.debug("Playback superseded while waiting for the voice catalog")
                return None

        voice: Voice | None = self.select_voice(voices, lang)
        logger.info("Speaking (lang: '%s', voice: '%s')", lang, voice.name if voice else "default")
        self._playback_task = asyncio.create_task(self._play(text, lang, voice))
        return self._playback_task

    async def _play(self, text: str, lang: str, voice: Voice | None) -> None:
        try:
            await self._synthesizer.speak(text, lang, voice)
        except asyncio.CancelledError:
            logger.debug("Playback cancelled")
            raise
        except SpeechSynthesisError as err:
            logger.error("Speech synthesis error: %s", err)
            for listener in list(self._error_listeners):
                listener(err)
        else:
            logger.debug("Playback completed")

    def cancel(self) -> None:
        """Stop playback. Does nothing when idle."""
        self._generation += 1
        task: asyncio.Task[None] | None = self._playback_task
        self._playback_task = None
        if task is not None and not task.done():
            task.cancel()
            self._synthesizer.cancel()
            logger.debug("Speech output cancelled")

    def close(self) -> None:
        """Cancel playback and release the synthesizer."""
        self.cancel()
        self._synthesizer.close()
