"""Translation orchestrator.

The orchestrator turns a stream of text and language changes into at most one well-ordered
translation result. Input is debounced; when the debounce window elapses, exactly one request is
built from the input at that moment and resolved against the cache, the live translation call, or
neither, depending on connectivity and the offline-mode flag.

Every asynchronous completion is fenced by a generation counter. Any input change, clear or new
commit advances the generation, and a completion whose captured generation is no longer current
is discarded. Everything runs on a single event loop; there is no locking.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Final, TypeAlias

from core.speech.interface import SpeechError
from core.trans.interface import TranslateExceptionError
from models.history_models import HistoryEntryData
from models.language_models import language_label
from models.translation_models import (
    Notification,
    NotificationLevel,
    OrchestratorSnapshot,
    OrchestratorState,
    OutcomeSource,
    TranslationOutcome,
    TranslationRequest,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

    from core.cache.manager import TranslationCacheManager
    from core.connectivity import ConnectivityMonitor
    from core.history.manager import HistoryManager
    from core.offline_mode import OfflineModeSetting
    from core.speech.input_controller import SpeechInputController
    from core.speech.interface import SpeechRecognitionError, SpeechSynthesisError
    from core.speech.output_controller import SpeechOutputController
    from models.config_models import Config

__all__: list[str] = ["TranslateFunc", "TranslationOrchestrator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

TranslateFunc: TypeAlias = "Callable[[str, str, str], Awaitable[str]]"
StateListener: TypeAlias = "Callable[[OrchestratorSnapshot], None]"
NotificationListener: TypeAlias = "Callable[[Notification], None]"

UNAVAILABLE_NOTE: Final[str] = "Translation is unavailable while offline. Enable offline mode in settings."
CACHE_MISS_NOTE: Final[str] = "No cached translation available offline."

TRANSLATION_ERROR: Final[Notification] = Notification(
    title="Translation Error",
    description="Failed to translate the text. Please try again.",
    level=NotificationLevel.ERROR,
    retryable=True,
)
SPEECH_PLAYBACK_ERROR: Final[Notification] = Notification(
    title="Speech Error",
    description="Could not play audio.",
    level=NotificationLevel.ERROR,
)

_TERMINAL_STATES: Final[frozenset[OrchestratorState]] = frozenset(
    {OrchestratorState.IDLE, OrchestratorState.SETTLED, OrchestratorState.FAILED}
)


class TranslationOrchestrator:
    """Debounced, single-flight translation state machine.

    States move Idle/Settled/Failed -> Debouncing on any input change, Debouncing -> Resolving when
    the debounce window elapses, and Resolving -> Settled/Failed when the committed request resolves.
    Public methods must be called from the event loop the orchestrator runs on.
    """

    def __init__(
        self,
        config: Config,
        translate: TranslateFunc,
        cache: TranslationCacheManager,
        connectivity: ConnectivityMonitor,
        offline_mode: OfflineModeSetting,
        history: HistoryManager | None = None,
        speech_input: SpeechInputController | None = None,
        speech_output: SpeechOutputController | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config (Config): Application configuration (TRANSLATION section).
            translate (TranslateFunc): Live translation call, `(text, source_lang, target_lang) -> text`.
                Raises `TranslateExceptionError` on failure.
            cache (TranslationCacheManager): Translation cache.
            connectivity (ConnectivityMonitor): Network status.
            offline_mode (OfflineModeSetting): Offline-mode flag.
            history (HistoryManager | None): History store for completed live translations.
            speech_input (SpeechInputController | None): Voice input feeding the source text.
            speech_output (SpeechOutputController | None): Voice output for the result.
        """
        self.config: Config = config
        self._translate: TranslateFunc = translate
        self._cache: TranslationCacheManager = cache
        self._connectivity: ConnectivityMonitor = connectivity
        self._offline_mode: OfflineModeSetting = offline_mode
        self._history: HistoryManager | None = history
        self._speech_input: SpeechInputController | None = speech_input
        self._speech_output: SpeechOutputController | None = speech_output
        self.debounce_sec: float = max(0.0, config.TRANSLATION.DEBOUNCE_SEC)

        self._text: str = ""
        self._source_lang: str = config.TRANSLATION.SOURCE_LANGUAGE
        self._target_lang: str = config.TRANSLATION.TARGET_LANGUAGE
        self._state: OrchestratorState = OrchestratorState.IDLE
        self._result_text: str = ""
        self._outcome: TranslationOutcome | None = None
        self._error: str = ""
        self._generation: int = 0

        self._debounce_handle: asyncio.TimerHandle | None = None
        self._resolve_task: asyncio.Task[None] | None = None
        self._settled: asyncio.Event = asyncio.Event()
        self._settled.set()

        self._state_listeners: list[StateListener] = []
        self._notification_listeners: list[NotificationListener] = []
        self._unsubscribers: list[Callable[[], None]] = []
        self._loaded: bool = False

    # --- lifecycle -------------------------------------------------------

    async def component_load(self) -> None:
        """Subscribe to connectivity, offline-mode and speech events."""
        if self._loaded:
            return
        self._loaded = True
        self._unsubscribers.append(self._connectivity.subscribe(self._on_connectivity_changed))
        self._unsubscribers.append(self._offline_mode.subscribe(self._on_offline_mode_changed))
        if self._speech_input is not None:
            self._unsubscribers.append(self._speech_input.on_session_start(self._on_recording_started))
            self._unsubscribers.append(self._speech_input.on_transcript(self.set_text))
            self._unsubscribers.append(self._speech_input.on_error(self._on_recognition_error))
        if self._speech_output is not None:
            self._unsubscribers.append(self._speech_output.on_error(self._on_playback_error))
        if not self._connectivity.is_online:
            self._emit_offline_notice()
        logger.debug("Translation orchestrator loaded")

    async def component_teardown(self) -> None:
        """Cancel pending work and unsubscribe."""
        self._cancel_debounce()
        self._generation += 1
        task: asyncio.Task[None] | None = self._resolve_task
        self._resolve_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._loaded = False
        self._settled.set()
        logger.debug("Translation orchestrator torn down")

    # --- observers -------------------------------------------------------

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def add_notification_listener(self, listener: NotificationListener) -> None:
        self._notification_listeners.append(listener)

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def text(self) -> str:
        return self._text

    @property
    def source_lang(self) -> str:
        return self._source_lang

    @property
    def target_lang(self) -> str:
        return self._target_lang

    @property
    def result_text(self) -> str:
        return self._result_text

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_effectively_offline(self) -> bool:
        """Offline with offline mode disabled: nothing can be translated."""
        return not self._connectivity.is_online and not self._offline_mode.enabled

    def snapshot(self) -> OrchestratorSnapshot:
        return OrchestratorSnapshot(
            state=self._state,
            source_text=self._text,
            source_lang=self._source_lang,
            target_lang=self._target_lang,
            result_text=self._result_text,
            generation=self._generation,
            outcome=self._outcome,
            error=self._error,
        )

    def _publish(self) -> None:
        snapshot: OrchestratorSnapshot = self.snapshot()
        for listener in list(self._state_listeners):
            try:
                listener(snapshot)
            except Exception as err:  # noqa: BLE001
                logger.error("State listener raised an exception: %s", err)

    def _notify(self, notification: Notification) -> None:
        logger.debug("Notification: %s - %s", notification.title, notification.description)
        for listener in list(self._notification_listeners):
            try:
                listener(notification)
            except Exception as err:  # noqa: BLE001
                logger.error("Notification listener raised an exception: %s", err)

    def _set_state(self, state: OrchestratorState) -> None:
        self._state = state
        if state in _TERMINAL_STATES:
            self._settled.set()
        else:
            self._settled.clear()
        logger.debug("Orchestrator state: %s (generation %d)", state, self._generation)
        self._publish()

    async def wait_until_settled(self) -> OrchestratorSnapshot:
        """Wait until no debounce or resolution is pending."""
        await self._settled.wait()
        return self.snapshot()

    # --- input -----------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Replace the source text and restart the debounce window.

        Setting the text it already holds is a no-op; use `translate_now()` to resolve it again.
        """
        if text == self._text and self._state != OrchestratorState.IDLE:
            return
        self._text = text
        self._on_input_changed()

    def set_source_lang(self, lang: str) -> None:
        """Select the source language. Stops an active recording and any playback."""
        if lang == self._source_lang:
            return
        if self._speech_input is not None and self._speech_input.is_listening:
            self._speech_input.stop()
        self._cancel_speech_output()
        self._source_lang = lang
        self._on_input_changed()

    def set_target_lang(self, lang: str) -> None:
        """Select the target language. Stops any playback."""
        if lang == self._target_lang:
            return
        self._cancel_speech_output()
        self._target_lang = lang
        self._on_input_changed()

    def swap_languages(self) -> bool:
        """Exchange source and target languages, seeding the source text with the current result.

        Returns:
            bool: False if the swap was rejected because a resolution is in flight, a recording is
            active or translation is unavailable offline.
        """
        if self._state == OrchestratorState.RESOLVING:
            logger.info("Swap rejected: translation in progress")
            return False
        if self._speech_input is not None and self._speech_input.is_listening:
            logger.info("Swap rejected: recording in progress")
            return False
        if self.is_effectively_offline:
            logger.info("Swap rejected: offline")
            return False

        self._cancel_speech_output()
        self._source_lang, self._target_lang = self._target_lang, self._source_lang
        self._text = self._result_text or ""
        logger.info("Languages swapped: %s -> %s", self._source_lang, self._target_lang)
        self._on_input_changed()
        return True

    def clear(self) -> None:
        """Clear text and result, cancelling pending work, recording and playback."""
        if self._speech_input is not None and self._speech_input.is_listening:
            self._speech_input.stop()
        self._cancel_speech_output()
        self._reset_text()

    def translate_now(self) -> None:
        """Resolve the current input immediately, skipping the debounce window."""
        self._cancel_debounce()
        self._commit()

    def _reset_text(self) -> None:
        self._cancel_debounce()
        self._invalidate()
        self._text = ""
        self._result_text = ""
        self._outcome = None
        self._error = ""
        self._set_state(OrchestratorState.IDLE)

    def _on_input_changed(self) -> None:
        self._cancel_debounce()
        self._invalidate()
        if not self._text.strip():
            self._result_text = ""
            self._outcome = None
            self._error = ""
            self._set_state(OrchestratorState.IDLE)
            return
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self.debounce_sec, self._commit)
        self._set_state(OrchestratorState.DEBOUNCING)

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _invalidate(self) -> None:
        """Advance the generation so that outstanding completions are discarded."""
        self._generation += 1
        task: asyncio.Task[None] | None = self._resolve_task
        self._resolve_task = None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Superseded in-flight resolution")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # --- resolution ------------------------------------------------------

    def _commit(self) -> None:
        self._debounce_handle = None
        self._invalidate()
        generation: int = self._generation
        request = TranslationRequest(self._text, self._source_lang, self._target_lang)
        logger.debug("Committing request (generation %d): %s", generation, request)
        self._set_state(OrchestratorState.RESOLVING)
        self._resolve_task = asyncio.get_running_loop().create_task(self._resolve(generation, request))

    async def _resolve(self, generation: int, request: TranslationRequest) -> None:
        try:
            outcome: TranslationOutcome | None = await self._run_resolution(generation, request)
        except TranslateExceptionError as err:
            if not self._is_current(generation):
                logger.debug("Discarding stale failure (generation %d)", generation)
                return
            logger.error("Translation failed: %s", err)
            self._result_text = ""
            self._outcome = None
            self._error = str(err)
            self._resolve_task = None
            self._set_state(OrchestratorState.FAILED)
            self._notify(TRANSLATION_ERROR)
            return

        if outcome is None or not self._is_current(generation):
            logger.debug("Discarding stale result (generation %d)", generation)
            return
        self._result_text = outcome.text
        self._outcome = outcome
        self._error = ""
        self._resolve_task = None
        logger.info("Resolved via %s (generation %d)", outcome.source, generation)
        self._set_state(OrchestratorState.SETTLED)

    async def _run_resolution(self, generation: int, request: TranslationRequest) -> TranslationOutcome | None:
        if request.is_empty:
            return TranslationOutcome("", OutcomeSource.EMPTY, request)
        if request.is_identity:
            return TranslationOutcome(request.text, OutcomeSource.IDENTITY, request)

        online: bool = self._connectivity.is_online
        offline_mode: bool = self._offline_mode.enabled

        if offline_mode:
            cached: str | None = await self._cache_get(request)
            if not self._is_current(generation):
                return None
            if cached is not None:
                return TranslationOutcome(cached, OutcomeSource.CACHE, request)
            if not online:
                return TranslationOutcome("", OutcomeSource.CACHE_MISS, request, note=CACHE_MISS_NOTE)

        if not online:
            return TranslationOutcome("", OutcomeSource.UNAVAILABLE, request, note=UNAVAILABLE_NOTE)

        try:
            translated: str = await self._translate(request.text, request.source_lang, request.target_lang)
        except TranslateExceptionError:
            raise
        except Exception as err:
            msg: str = f"Translation call failed: {err}"
            raise TranslateExceptionError(msg) from err
        if not self._is_current(generation):
            return None
        if not translated:
            msg = "The translation call returned an empty result"
            raise TranslateExceptionError(msg)

        if offline_mode:
            await self._cache_put(request, translated)
        await self._append_history(request, translated)
        return TranslationOutcome(translated, OutcomeSource.LIVE, request)

    async def _cache_get(self, request: TranslationRequest) -> str | None:
        try:
            return await self._cache.get(request)
        except Exception as err:  # noqa: BLE001
            logger.error("Cache lookup failed, treating as a miss: %s", err)
            return None

    async def _cache_put(self, request: TranslationRequest, translated: str) -> None:
        try:
            await self._cache.put(request, translated)
        except Exception as err:  # noqa: BLE001
            logger.error("Cache write failed: %s", err)

    async def _append_history(self, request: TranslationRequest, translated: str) -> None:
        if self._history is None:
            return
        data = HistoryEntryData(
            source_language=language_label(request.source_lang),
            target_language=language_label(request.target_lang),
            source_text=request.text,
            target_text=translated,
            source_language_code=request.source_lang,
            target_language_code=request.target_lang,
        )
        try:
            entry_id: str = await self._history.append_entry(data)
        except Exception as err:  # noqa: BLE001
            logger.error("History append failed: %s", err)
            return
        if not entry_id:
            logger.warning("Skipping history entry due to missing data or storage failure")

    # --- connectivity and offline mode ------------------------------------

    def _emit_offline_notice(self) -> None:
        enabled: bool = self._offline_mode.enabled
        self._notify(
            Notification(
                title="Offline Mode Active",
                description=(
                    "Using cached translations where possible."
                    if enabled
                    else "Translation might not work. Enable offline mode in settings."
                ),
                level=NotificationLevel.INFO if enabled else NotificationLevel.WARNING,
            )
        )

    def _on_connectivity_changed(self, is_online: bool) -> None:
        if not is_online:
            self._emit_offline_notice()
        self._on_routing_changed()

    def _on_offline_mode_changed(self, enabled: bool) -> None:
        _ = enabled
        if not self._connectivity.is_online:
            self._emit_offline_notice()
        self._on_routing_changed()

    def _on_routing_changed(self) -> None:
        if self._text.strip():
            self._on_input_changed()

    # --- speech ----------------------------------------------------------

    def toggle_recording(self) -> bool:
        """Start voice input in the source language, or stop it if already recording.

        Returns:
            bool: True if a recording session is active afterwards.
        """
        if self._speech_input is None:
            self._notify(
                Notification("Error", "Speech recognition not supported on this platform.", NotificationLevel.ERROR)
            )
            return False
        try:
            self._speech_input.start(self._source_lang)
        except SpeechError as err:
            title: str = "Offline" if not self._connectivity.is_online else "Error"
            self._notify(Notification(title, str(err), NotificationLevel.ERROR))
            return False
        return self._speech_input.is_listening

    def _on_recording_started(self) -> None:
        self._reset_text()
        self._notify(Notification("Listening...", "Speak into your microphone."))

    def _on_recognition_error(self, err: SpeechRecognitionError) -> None:
        self._notify(Notification("Speech Recognition Error", str(err), NotificationLevel.ERROR))

    def _on_playback_error(self, err: SpeechSynthesisError) -> None:
        _ = err
        self._notify(SPEECH_PLAYBACK_ERROR)

    def _cancel_speech_output(self) -> None:
        if self._speech_output is not None:
            self._speech_output.cancel()

    async def speak_result(self) -> asyncio.Task[None] | None:
        """Speak the current result in the target language.

        Returns:
            asyncio.Task[None] | None: The playback task, or None if nothing is played.
        """
        if self._speech_output is None:
            return None
        if self._state == OrchestratorState.RESOLVING or not self._result_text:
            return None
        try:
            task: asyncio.Task[None] | None = await self._speech_output.speak(self._result_text, self._target_lang)
        except SpeechError as err:
            title: str = "Offline" if not self._connectivity.is_online else "Error"
            self._notify(Notification(title, str(err), NotificationLevel.ERROR))
            return None
        if task is not None:
            self._notify(Notification("Speaking", "Playing translated text..."))
        return task
