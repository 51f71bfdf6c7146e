"""Shared data management for application components.

This module defines the SharedData class, which serves as a centralized container for shared resources and services
used across the application. It owns the key-value storage and builds the translation cache, history, connectivity
monitor, offline-mode flag, translation engines, optional speech input and output and the translation orchestrator
on top of it. Speech input is wired only when the host supplies a recognizer backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.cache.manager import TranslationCacheManager
from core.cache.storage import KeyValueStorage, SqliteStorage
from core.connectivity import ConnectivityMonitor
from core.history.manager import HistoryManager
from core.offline_mode import OfflineModeSetting
from core.orchestrator import TranslationOrchestrator
from core.speech.input_controller import SpeechInputController
from core.trans.manager import TransManager
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.speech.interface import RecognizerBackend
    from core.speech.output_controller import SpeechOutputController
    from models.config_models import Config


__all__: list[str] = ["SharedData"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class SharedData:
    _config: Config = field()
    _storage: KeyValueStorage | None = field(default=None)
    _recognizer: RecognizerBackend | None = field(default=None)
    _cache_manager: TranslationCacheManager = field(init=False)
    _history_manager: HistoryManager = field(init=False)
    _connectivity: ConnectivityMonitor = field(init=False)
    _offline_mode: OfflineModeSetting = field(init=False)
    _trans_manager: TransManager = field(init=False)
    _speech_input: SpeechInputController | None = field(init=False, default=None)
    _speech_output: SpeechOutputController | None = field(init=False, default=None)
    _orchestrator: TranslationOrchestrator = field(init=False)

    async def async_init(self) -> None:
        """Build all services. Must be awaited inside the running event loop.

        Raises:
            StorageError: If the storage database cannot be opened.
        """
        if self._storage is None:
            db_path = FileUtils.ensure_parent_dir(FileUtils.resolve_path(self.config.GENERAL.STORAGE_PATH))
            self._storage = SqliteStorage(db_path, max_bytes=self.config.CACHE.MAX_BYTES)

        self._cache_manager = TranslationCacheManager(self.config, self.storage)
        self._history_manager = HistoryManager(self.config, self.storage)
        self._connectivity = ConnectivityMonitor(assume_online=self.config.OFFLINE.ASSUME_ONLINE)
        self._offline_mode = OfflineModeSetting(self.storage, default=self.config.OFFLINE.MODE_ENABLED)
        self._trans_manager = TransManager(self.config)
        await self._trans_manager.initialize()

        if self.config.SPEECH.OUTPUT_ENABLED:
            self._speech_output = self._create_speech_output()
        if self._recognizer is not None:
            self._speech_input = SpeechInputController(self._recognizer, self._connectivity, self._speech_output)
            if self._speech_output is not None:
                self._speech_output.set_input_controller(self._speech_input)

        self._orchestrator = TranslationOrchestrator(
            self.config,
            translate=self._trans_manager.translate,
            cache=self._cache_manager,
            connectivity=self._connectivity,
            offline_mode=self._offline_mode,
            history=self._history_manager,
            speech_input=self._speech_input,
            speech_output=self._speech_output,
        )
        await self._orchestrator.component_load()

    def _create_speech_output(self) -> SpeechOutputController:
        from core.speech.engines.g_tts import GoogleSpeechSynthesizer
        from core.speech.engines.pyaudio_sink import PyAudioSink
        from core.speech.output_controller import SpeechOutputController

        synthesizer = GoogleSpeechSynthesizer(
            PyAudioSink(),
            tld=self.config.SPEECH.GOOGLE_SUFFIX,
            volume=self.config.SPEECH.VOLUME,
        )
        synthesizer.preload_voices()
        logger.info("Speech output enabled (gTTS, tld: '%s')", self.config.SPEECH.GOOGLE_SUFFIX)
        return SpeechOutputController(synthesizer, self._connectivity)

    async def close(self) -> None:
        """Tear down the orchestrator, close engines and release the storage."""
        await self._orchestrator.component_teardown()
        if self._speech_input is not None:
            self._speech_input.stop()
        if self._speech_output is not None:
            self._speech_output.cancel()
            self._speech_output.close()
        await self._trans_manager.shutdown_engines()
        self.storage.close()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def storage(self) -> KeyValueStorage:
        if self._storage is None:
            msg = "Storage is not initialized"
            raise RuntimeError(msg)
        return self._storage

    @property
    def cache_manager(self) -> TranslationCacheManager:
        return self._cache_manager

    @property
    def history_manager(self) -> HistoryManager:
        return self._history_manager

    @property
    def connectivity(self) -> ConnectivityMonitor:
        return self._connectivity

    @property
    def offline_mode(self) -> OfflineModeSetting:
        return self._offline_mode

    @property
    def trans_manager(self) -> TransManager:
        return self._trans_manager

    @property
    def speech_input(self) -> SpeechInputController | None:
        return self._speech_input

    @property
    def speech_output(self) -> SpeechOutputController | None:
        return self._speech_output

    @property
    def orchestrator(self) -> TranslationOrchestrator:
        return self._orchestrator
