"""Tests for TranslationOrchestrator.

Covers debouncing, generation fencing, the resolution order (identity, cache, live call, offline
fallbacks), cache write-through, history recording, language swap and the speech hooks.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import replace

import pytest

from core.cache.manager import TranslationCacheManager
from core.cache.storage import MemoryStorage
from core.connectivity import ConnectivityMonitor
from core.history.manager import HistoryManager
from core.offline_mode import OfflineModeSetting
from core.orchestrator import (
    CACHE_MISS_NOTE,
    SPEECH_PLAYBACK_ERROR,
    TRANSLATION_ERROR,
    UNAVAILABLE_NOTE,
    TranslationOrchestrator,
)
from core.speech.input_controller import SpeechInputController
from core.speech.interface import SpeechSynthesisError
from core.speech.output_controller import SpeechOutputController
from core.trans.interface import TranslateExceptionError
from models.config_models import Config, Translation
from models.speech_models import RecognitionSegment, RecordingState, Voice
from models.translation_models import (
    Notification,
    NotificationLevel,
    OrchestratorSnapshot,
    OrchestratorState,
    OutcomeSource,
    TranslationRequest,
)
from tests.core.speech.fakes import FakeRecognizer, FakeSynthesizer

DEBOUNCE_SEC: float = 0.05
DAY_SEC: float = 24 * 60 * 60


class FakeTranslator:
    """Live translation call recording every request."""

    def __init__(self) -> None:
        self.results: dict[str, str] = {"hello": "hola"}
        self.calls: list[tuple[str, str, str]] = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None

    async def __call__(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.results.get(text, f"{text} ({target_lang})")


class StubbornTranslator(FakeTranslator):
    """Live call that keeps running when its task is cancelled."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.ignored_cancellations: int = 0
        self.completed: int = 0

    async def __call__(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        assert self.gate is not None
        while not self.gate.is_set():
            try:
                await self.gate.wait()
            except asyncio.CancelledError:
                self.ignored_cancellations += 1
        self.completed += 1
        return f"{text} ({target_lang})"


class FailingLookupCache(TranslationCacheManager):
    async def get(self, request: TranslationRequest) -> str | None:
        msg = "disk error"
        raise RuntimeError(msg)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now: float = now

    def __call__(self) -> float:
        return self.now


class Recorder:
    def __init__(self) -> None:
        self.snapshots: list[OrchestratorSnapshot] = []
        self.notifications: list[Notification] = []

    @property
    def states(self) -> list[OrchestratorState]:
        return [snapshot.state for snapshot in self.snapshots]


@pytest.fixture(autouse=True)
def reset_active_controller(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(SpeechInputController, "_active", None)


@pytest.fixture
def config() -> Config:
    return replace(Config(), TRANSLATION=Translation(DEBOUNCE_SEC=DEBOUNCE_SEC))


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    return ConnectivityMonitor()


@pytest.fixture
def offline_mode(storage: MemoryStorage) -> OfflineModeSetting:
    return OfflineModeSetting(storage)


@pytest.fixture
def cache(config: Config, storage: MemoryStorage, clock: FakeClock) -> TranslationCacheManager:
    return TranslationCacheManager(config, storage, clock=clock)


@pytest.fixture
def history(config: Config, storage: MemoryStorage) -> HistoryManager:
    return HistoryManager(config, storage)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
async def orchestrator(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
    history: HistoryManager,
    recorder: Recorder,
) -> AsyncIterator[TranslationOrchestrator]:
    orchestrator = TranslationOrchestrator(
        config,
        translate=translator,
        cache=cache,
        connectivity=connectivity,
        offline_mode=offline_mode,
        history=history,
    )
    orchestrator.add_state_listener(recorder.snapshots.append)
    orchestrator.add_notification_listener(recorder.notifications.append)
    await orchestrator.component_load()
    yield orchestrator
    await orchestrator.component_teardown()


async def _settle(orchestrator: TranslationOrchestrator, text: str) -> OrchestratorSnapshot:
    orchestrator.set_text(text)
    return await orchestrator.wait_until_settled()


@pytest.mark.asyncio
async def test_live_translation_settles(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator, recorder: Recorder
) -> None:
    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.state == OrchestratorState.SETTLED
    assert snapshot.result_text == "hola"
    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.LIVE
    assert snapshot.outcome.request == TranslationRequest("hello", "en", "es")
    assert translator.calls == [("hello", "en", "es")]
    assert recorder.states == [OrchestratorState.DEBOUNCING, OrchestratorState.RESOLVING, OrchestratorState.SETTLED]


@pytest.mark.asyncio
async def test_text_is_trimmed_before_translation(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    await _settle(orchestrator, "  hello \n")

    assert translator.calls == [("hello", "en", "es")]
    assert orchestrator.text == "  hello \n"


@pytest.mark.asyncio
async def test_debounce_coalesces_rapid_input(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    for text in ("h", "he", "hel", "hell", "hello"):
        orchestrator.set_text(text)
        await asyncio.sleep(DEBOUNCE_SEC / 5)

    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()

    assert translator.calls == [("hello", "en", "es")]
    assert snapshot.result_text == "hola"


@pytest.mark.asyncio
async def test_blank_text_returns_to_idle(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    await _settle(orchestrator, "hello")

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "   ")

    assert snapshot.state == OrchestratorState.IDLE
    assert snapshot.result_text == ""
    assert snapshot.outcome is None
    assert translator.calls == [("hello", "en", "es")]


@pytest.mark.asyncio
async def test_identity_pair_skips_translation(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    orchestrator.set_target_lang("en")

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.result_text == "hello"
    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.IDENTITY
    assert translator.calls == []


@pytest.mark.asyncio
async def test_translate_now_skips_debounce(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    orchestrator.set_text("hello")

    orchestrator.translate_now()

    assert orchestrator.state == OrchestratorState.RESOLVING
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()
    assert snapshot.result_text == "hola"
    await asyncio.sleep(DEBOUNCE_SEC * 2)
    assert translator.calls == [("hello", "en", "es")]


@pytest.mark.asyncio
async def test_input_change_discards_in_flight_result(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator, recorder: Recorder
) -> None:
    translator.gate = asyncio.Event()
    orchestrator.set_text("first")
    orchestrator.translate_now()
    await asyncio.sleep(0)
    first_generation: int = orchestrator.generation

    orchestrator.set_text("second")
    orchestrator.translate_now()
    translator.gate.set()
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()

    assert orchestrator.generation > first_generation
    assert snapshot.result_text == "second (es)"
    assert [s.result_text for s in recorder.snapshots if s.state == OrchestratorState.SETTLED] == ["second (es)"]


@pytest.mark.asyncio
async def test_live_result_is_recorded_in_history(
    orchestrator: TranslationOrchestrator, history: HistoryManager
) -> None:
    await _settle(orchestrator, "hello")

    entries = await history.fetch_history()

    assert len(entries) == 1
    assert entries[0].source_text == "hello"
    assert entries[0].target_text == "hola"
    assert entries[0].source_language == "English"
    assert entries[0].target_language == "Spanish"
    assert entries[0].source_language_code == "en"
    assert entries[0].target_language_code == "es"


@pytest.mark.asyncio
async def test_identity_result_is_not_recorded_in_history(
    orchestrator: TranslationOrchestrator, history: HistoryManager
) -> None:
    orchestrator.set_target_lang("en")
    await _settle(orchestrator, "hello")

    assert await history.fetch_history() == []


@pytest.mark.asyncio
async def test_live_result_is_not_cached_when_offline_mode_disabled(
    orchestrator: TranslationOrchestrator, cache: TranslationCacheManager
) -> None:
    await _settle(orchestrator, "hello")

    assert await cache.get(TranslationRequest("hello", "en", "es")) is None


@pytest.mark.asyncio
async def test_cached_translation_is_served_offline(
    orchestrator: TranslationOrchestrator,
    translator: FakeTranslator,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
    cache: TranslationCacheManager,
) -> None:
    offline_mode.set_enabled(True)
    await _settle(orchestrator, "hello")
    assert await cache.get(TranslationRequest("hello", "en", "es")) == "hola"

    connectivity.set_offline()
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()

    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.CACHE
    assert snapshot.result_text == "hola"
    assert translator.calls == [("hello", "en", "es")]


@pytest.mark.asyncio
async def test_cache_is_preferred_over_live_call_in_offline_mode(
    orchestrator: TranslationOrchestrator,
    translator: FakeTranslator,
    offline_mode: OfflineModeSetting,
    cache: TranslationCacheManager,
) -> None:
    offline_mode.set_enabled(True)
    await cache.put(TranslationRequest("hello", "en", "es"), "buenas")

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.result_text == "buenas"
    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.CACHE
    assert translator.calls == []


@pytest.mark.asyncio
async def test_expired_cache_entry_is_a_miss_offline(
    orchestrator: TranslationOrchestrator,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
    cache: TranslationCacheManager,
    clock: FakeClock,
) -> None:
    offline_mode.set_enabled(True)
    await cache.put(TranslationRequest("hello", "en", "es"), "hola")
    clock.now += 8 * DAY_SEC
    connectivity.set_offline()

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.CACHE_MISS
    assert snapshot.outcome.note == CACHE_MISS_NOTE
    assert snapshot.result_text == ""


@pytest.mark.asyncio
async def test_offline_without_offline_mode_is_unavailable(
    orchestrator: TranslationOrchestrator,
    translator: FakeTranslator,
    connectivity: ConnectivityMonitor,
    recorder: Recorder,
) -> None:
    connectivity.set_offline()

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.state == OrchestratorState.SETTLED
    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.UNAVAILABLE
    assert snapshot.outcome.note == UNAVAILABLE_NOTE
    assert translator.calls == []
    assert orchestrator.is_effectively_offline is True
    assert recorder.notifications[0].title == "Offline Mode Active"
    assert recorder.notifications[0].level == NotificationLevel.WARNING


@pytest.mark.asyncio
async def test_connectivity_change_resolves_again(
    orchestrator: TranslationOrchestrator, connectivity: ConnectivityMonitor
) -> None:
    await _settle(orchestrator, "hello")

    connectivity.set_offline()
    assert orchestrator.state == OrchestratorState.DEBOUNCING
    offline: OrchestratorSnapshot = await orchestrator.wait_until_settled()
    connectivity.set_online()
    online: OrchestratorSnapshot = await orchestrator.wait_until_settled()

    assert offline.outcome is not None
    assert offline.outcome.source == OutcomeSource.UNAVAILABLE
    assert online.outcome is not None
    assert online.outcome.source == OutcomeSource.LIVE
    assert online.result_text == "hola"


@pytest.mark.asyncio
async def test_translation_failure_notifies(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator, recorder: Recorder
) -> None:
    translator.error = TranslateExceptionError("service down")

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.state == OrchestratorState.FAILED
    assert snapshot.error == "service down"
    assert snapshot.result_text == ""
    assert recorder.notifications == [TRANSLATION_ERROR]


@pytest.mark.asyncio
async def test_unexpected_translation_error_is_wrapped(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    translator.error = ValueError("bad payload")

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.state == OrchestratorState.FAILED
    assert "bad payload" in snapshot.error


@pytest.mark.asyncio
async def test_empty_translation_fails(orchestrator: TranslationOrchestrator, translator: FakeTranslator) -> None:
    translator.results["hello"] = ""

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.state == OrchestratorState.FAILED


@pytest.mark.asyncio
async def test_swap_uses_result_as_new_source(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    await _settle(orchestrator, "hello")

    assert orchestrator.swap_languages() is True
    assert orchestrator.source_lang == "es"
    assert orchestrator.target_lang == "en"
    assert orchestrator.text == "hola"
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()

    assert translator.calls[-1] == ("hola", "es", "en")
    assert snapshot.result_text == "hola (en)"


@pytest.mark.asyncio
async def test_swap_rejected_while_resolving(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    translator.gate = asyncio.Event()
    orchestrator.set_text("hello")
    orchestrator.translate_now()

    assert orchestrator.swap_languages() is False
    assert orchestrator.source_lang == "en"

    translator.gate.set()
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()
    assert snapshot.result_text == "hola"


@pytest.mark.asyncio
async def test_swap_rejected_when_effectively_offline(
    orchestrator: TranslationOrchestrator, connectivity: ConnectivityMonitor
) -> None:
    connectivity.set_offline()

    assert orchestrator.swap_languages() is False
    assert orchestrator.source_lang == "en"


@pytest.mark.asyncio
async def test_clear_resets_everything(orchestrator: TranslationOrchestrator, translator: FakeTranslator) -> None:
    orchestrator.set_text("hello")

    orchestrator.clear()
    await asyncio.sleep(DEBOUNCE_SEC * 2)

    assert orchestrator.state == OrchestratorState.IDLE
    assert orchestrator.text == ""
    assert orchestrator.result_text == ""
    assert translator.calls == []


@pytest.mark.asyncio
async def test_teardown_cancels_pending_debounce(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    orchestrator.set_text("hello")

    await orchestrator.component_teardown()
    await asyncio.sleep(DEBOUNCE_SEC * 2)

    assert translator.calls == []


@pytest.mark.asyncio
async def test_toggle_recording_without_speech_input(
    orchestrator: TranslationOrchestrator, recorder: Recorder
) -> None:
    assert orchestrator.toggle_recording() is False
    assert recorder.notifications[-1].level == NotificationLevel.ERROR


@pytest.mark.asyncio
async def test_recording_feeds_source_text(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    recognizer = FakeRecognizer()
    speech_input = SpeechInputController(recognizer, connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_input=speech_input
    )
    await orchestrator.component_load()
    await _settle(orchestrator, "previous")

    assert orchestrator.toggle_recording() is True
    assert orchestrator.text == ""
    assert orchestrator.result_text == ""
    assert orchestrator.state == OrchestratorState.IDLE
    assert orchestrator.swap_languages() is False

    recognizer.emit(RecognitionSegment("hello", is_final=True))
    assert orchestrator.toggle_recording() is False
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()

    assert snapshot.result_text == "hola"
    assert recognizer.started_langs == ["en"]
    await orchestrator.component_teardown()


@pytest.mark.asyncio
async def test_recording_offline_notifies(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    speech_input = SpeechInputController(FakeRecognizer(), connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_input=speech_input
    )
    notifications: list[Notification] = []
    orchestrator.add_notification_listener(notifications.append)
    connectivity.set_offline()

    assert orchestrator.toggle_recording() is False
    assert notifications[-1].title == "Offline"
    assert notifications[-1].description == "Voice input requires an internet connection."


@pytest.mark.asyncio
async def test_speak_result_plays_translation(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    synthesizer = FakeSynthesizer([Voice("Monica", "es-ES")])
    speech_output = SpeechOutputController(synthesizer, connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_output=speech_output
    )
    notifications: list[Notification] = []
    orchestrator.add_notification_listener(notifications.append)
    await orchestrator.component_load()

    assert await orchestrator.speak_result() is None
    await _settle(orchestrator, "hello")
    task = await orchestrator.speak_result()
    assert task is not None
    await task

    assert synthesizer.spoken == [("hola", "es", Voice("Monica", "es-ES"))]
    assert notifications[-1].title == "Speaking"
    await orchestrator.component_teardown()


@pytest.mark.asyncio
async def test_playback_error_notifies(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    synthesizer = FakeSynthesizer([Voice("Monica", "es-ES")])
    synthesizer.error = SpeechSynthesisError("device busy")
    speech_output = SpeechOutputController(synthesizer, connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_output=speech_output
    )
    notifications: list[Notification] = []
    orchestrator.add_notification_listener(notifications.append)
    await orchestrator.component_load()
    await _settle(orchestrator, "hello")

    task = await orchestrator.speak_result()
    assert task is not None
    await task

    assert notifications[-1] == SPEECH_PLAYBACK_ERROR
    await orchestrator.component_teardown()


@pytest.mark.asyncio
async def test_same_text_does_not_resolve_again(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator, history: HistoryManager
) -> None:
    await _settle(orchestrator, "hello")

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")
    await asyncio.sleep(DEBOUNCE_SEC * 2)

    assert snapshot.state == OrchestratorState.SETTLED
    assert snapshot.result_text == "hola"
    assert translator.calls == [("hello", "en", "es")]
    assert len(await history.fetch_history()) == 1


@pytest.mark.asyncio
async def test_translate_now_resolves_same_text_again(
    orchestrator: TranslationOrchestrator, translator: FakeTranslator
) -> None:
    await _settle(orchestrator, "hello")

    orchestrator.translate_now()
    await orchestrator.wait_until_settled()

    assert translator.calls == [("hello", "en", "es"), ("hello", "en", "es")]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["hello", "   "])
async def test_identity_and_empty_requests_are_not_cached_in_offline_mode(
    orchestrator: TranslationOrchestrator,
    translator: FakeTranslator,
    offline_mode: OfflineModeSetting,
    cache: TranslationCacheManager,
    text: str,
) -> None:
    offline_mode.set_enabled(True)
    orchestrator.set_target_lang("en")

    await _settle(orchestrator, text)
    orchestrator.translate_now()
    await orchestrator.wait_until_settled()

    assert translator.calls == []
    assert (await cache.get_cache_statistics()).total_entries == 0


@pytest.mark.asyncio
async def test_failing_cache_lookup_falls_through_to_live_call(
    config: Config,
    translator: FakeTranslator,
    storage: MemoryStorage,
    clock: FakeClock,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    offline_mode.set_enabled(True)
    cache = FailingLookupCache(config, storage, clock=clock)
    orchestrator = TranslationOrchestrator(config, translator, cache, connectivity, offline_mode)
    await orchestrator.component_load()

    snapshot: OrchestratorSnapshot = await _settle(orchestrator, "hello")

    assert snapshot.state == OrchestratorState.SETTLED
    assert snapshot.outcome is not None
    assert snapshot.outcome.source == OutcomeSource.LIVE
    assert snapshot.result_text == "hola"
    assert translator.calls == [("hello", "en", "es")]
    await orchestrator.component_teardown()


@pytest.mark.asyncio
async def test_superseded_call_ignoring_cancellation_is_dropped(
    config: Config,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
    history: HistoryManager,
    recorder: Recorder,
) -> None:
    translator = StubbornTranslator()
    orchestrator = TranslationOrchestrator(config, translator, cache, connectivity, offline_mode, history=history)
    orchestrator.add_state_listener(recorder.snapshots.append)
    await orchestrator.component_load()
    orchestrator.set_text("first")
    orchestrator.translate_now()
    await asyncio.sleep(0)

    orchestrator.set_text("second")
    orchestrator.translate_now()
    await asyncio.sleep(0)
    assert translator.gate is not None
    translator.gate.set()
    snapshot: OrchestratorSnapshot = await orchestrator.wait_until_settled()
    for _ in range(10):
        if translator.completed == 2:
            break
        await asyncio.sleep(0.01)

    assert translator.ignored_cancellations == 1
    assert translator.completed == 2
    assert snapshot.result_text == "second (es)"
    assert [s.result_text for s in recorder.snapshots if s.state == OrchestratorState.SETTLED] == ["second (es)"]
    entries = await history.fetch_history()
    assert [entry.source_text for entry in entries] == ["second"]
    await orchestrator.component_teardown()


@pytest.mark.asyncio
async def test_reload_does_not_duplicate_speech_listeners(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    recognizer = FakeRecognizer()
    speech_input = SpeechInputController(recognizer, connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_input=speech_input
    )
    notifications: list[Notification] = []
    orchestrator.add_notification_listener(notifications.append)
    await orchestrator.component_load()
    await orchestrator.component_teardown()
    await orchestrator.component_load()

    assert orchestrator.toggle_recording() is True
    recognizer.emit(RecognitionSegment("hello", is_final=True))
    orchestrator.toggle_recording()
    await orchestrator.wait_until_settled()

    assert [n.title for n in notifications].count("Listening...") == 1
    assert translator.calls == [("hello", "en", "es")]
    await orchestrator.component_teardown()


@pytest.mark.asyncio
async def test_teardown_detaches_speech_listeners(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    recognizer = FakeRecognizer()
    speech_input = SpeechInputController(recognizer, connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_input=speech_input
    )
    await orchestrator.component_load()
    await orchestrator.component_teardown()

    speech_input.start("en")
    recognizer.emit(RecognitionSegment("hello", is_final=True))

    assert orchestrator.text == ""
    speech_input.stop()


@pytest.mark.asyncio
async def test_recording_start_failure_notifies(
    config: Config,
    translator: FakeTranslator,
    cache: TranslationCacheManager,
    connectivity: ConnectivityMonitor,
    offline_mode: OfflineModeSetting,
) -> None:
    recognizer = FakeRecognizer()
    recognizer.start_error = OSError("no microphone")
    speech_input = SpeechInputController(recognizer, connectivity)
    orchestrator = TranslationOrchestrator(
        config, translator, cache, connectivity, offline_mode, speech_input=speech_input
    )
    notifications: list[Notification] = []
    orchestrator.add_notification_listener(notifications.append)

    assert orchestrator.toggle_recording() is False
    assert notifications[-1].title == "Error"
    assert "no microphone" in notifications[-1].description
    assert speech_input.state == RecordingState.IDLE
