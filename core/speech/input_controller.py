"""Speech input controller.

Runs one recognition session at a time and turns the recognizer's result slots into a single
transcript. Interim results are provisional: every update replaces the transcript wholesale.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, ClassVar

from core.speech.interface import (
    SpeechError,
    SpeechOfflineError,
    SpeechRecognitionError,
    SpeechUnsupportedError,
    add_listener,
    categorize_recognition_error,
)
from models.speech_models import RecordingState
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.connectivity import ConnectivityMonitor
    from core.speech.interface import RecognizerBackend
    from core.speech.output_controller import SpeechOutputController
    from models.speech_models import RecognitionSegment

__all__: list[str] = ["SpeechInputController"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _build_transcript(segments: list[RecognitionSegment]) -> str:
    final: str = "".join(seg.transcript for seg in segments if seg.is_final)
    if final:
        return final
    return "".join(seg.transcript for seg in segments if not seg.is_final)


class SpeechInputController:
    """Start/stop voice capture feeding a transcript.

    Attributes:
        _active (ClassVar[SpeechInputController | None]): The controller currently listening, process-wide.
    """

    _active: ClassVar[SpeechInputController | None] = None

    def __init__(
        self,
        recognizer: RecognizerBackend,
        connectivity: ConnectivityMonitor,
        output_controller: SpeechOutputController | None = None,
    ) -> None:
        self._recognizer: RecognizerBackend = recognizer
        self._connectivity: ConnectivityMonitor = connectivity
        self._output_controller: SpeechOutputController | None = output_controller
        self._state: RecordingState = RecordingState.IDLE
        self._transcript: str = ""
        self._session_id: int = 0
        self._session_listeners: list[Callable[[], None]] = []
        self._transcript_listeners: list[Callable[[str], None]] = []
        self._error_listeners: list[Callable[[SpeechRecognitionError], None]] = []
        self._state_listeners: list[Callable[[RecordingState], None]] = []

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state == RecordingState.LISTENING

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def is_supported(self) -> bool:
        return self._recognizer.is_available

    def set_output_controller(self, output_controller: SpeechOutputController | None) -> None:
        self._output_controller = output_controller

    def on_session_start(self, listener: Callable[[], None]) -> Callable[[], None]:
        return add_listener(self._session_listeners, listener)

    def on_transcript(self, listener: Callable[[str], None]) -> Callable[[], None]:
        return add_listener(self._transcript_listeners, listener)

    def on_error(self, listener: Callable[[SpeechRecognitionError], None]) -> Callable[[], None]:
        return add_listener(self._error_listeners, listener)

    def on_state_change(self, listener: Callable[[RecordingState], None]) -> Callable[[], None]:
        return add_listener(self._state_listeners, listener)

    def _set_state(self, state: RecordingState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.debug("Recording state: %s", state)
        for listener in list(self._state_listeners):
            listener(state)

    def start(self, lang: str) -> None:
        """Start a recording session, or stop the current one if already listening.

        Args:
            lang (str): Recognition language code.

        Raises:
            SpeechUnsupportedError: If the platform has no speech recognition.
            SpeechOfflineError: If the host is offline.
            SpeechRecognitionError: If the recognizer fails to start.
        """
        if self.is_listening:
            logger.debug("Recording already active, stopping instead")
            self.stop()
            return
        if not self._recognizer.is_available:
            msg = "Speech recognition is not supported on this platform."
            raise SpeechUnsupportedError(msg)
        if not self._connectivity.is_online:
            msg = "Voice input requires an internet connection."
            raise SpeechOfflineError(msg)

        active: SpeechInputController | None = SpeechInputController._active
        if active is not None and active is not self:
            active.stop()
        if self._output_controller is not None:
            self._output_controller.cancel()

        self._session_id += 1
        session_id: int = self._session_id
        self._transcript = ""
        for listener in list(self._session_listeners):
            listener()

        SpeechInputController._active = self
        self._set_state(RecordingState.LISTENING)
        logger.info("Speech recognition started (lang: '%s')", lang)
        try:
            self._recognizer.start(
                lang,
                on_update=partial(self._handle_update, session_id),
                on_error=partial(self._handle_error, session_id),
                on_end=partial(self._handle_end, session_id),
            )
        except SpeechError:
            self._end_session()
            raise
        except Exception as err:
            self._end_session()
            logger.error("Speech recognizer failed to start: %s", err)
            msg = f"Could not start speech recognition: {err}"
            raise SpeechRecognitionError("start-failed", msg) from err

    def stop(self) -> None:
        """Stop the current session. The transcript is kept."""
        if not self.is_listening:
            return
        logger.info("Speech recognition stopped")
        self._set_state(RecordingState.STOPPED)
        try:
            self._recognizer.stop()
        finally:
            self._end_session()

    def _end_session(self) -> None:
        # Late callbacks from the finished session are ignored.
        self._session_id += 1
        if SpeechInputController._active is self:
            SpeechInputController._active = None
        self._set_state(RecordingState.IDLE)

    def _handle_update(self, session_id: int, segments: list[RecognitionSegment]) -> None:
        if session_id != self._session_id:
            return
        self._transcript = _build_transcript(segments)
        logger.debug("Transcript updated: '%s'", self._transcript)
        for listener in list(self._transcript_listeners):
            listener(self._transcript)

    def _handle_error(self, session_id: int, code: str) -> None:
        if session_id != self._session_id:
            return
        error: SpeechRecognitionError = categorize_recognition_error(code)
        logger.warning("Speech recognition error '%s': %s", code, error)
        self._end_session()
        for listener in list(self._error_listeners):
            listener(error)

    def _handle_end(self, session_id: int) -> None:
        if session_id != self._session_id:
            return
        logger.debug("Speech recognition session ended")
        self._end_session()
