from __future__ import annotations

import asyncio
from io import BytesIO
from typing import TYPE_CHECKING, Any

import numpy as np
import soundfile
from gtts import gTTS, gTTSError
from gtts.lang import tts_langs
from numpy import dtype

from core.speech.interface import SpeechSynthesisError, SynthesizerBackend
from models.speech_models import Voice
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.speech.interface import AudioSink


__all__: list[str] = ["GoogleSpeechSynthesizer"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _ensure_float32_array(arr: Any, label: str = "audio data") -> np.ndarray[Any, dtype[np.float32]]:
    """Validate that decoded audio is a float32 ndarray.

    Raises:
        TypeError: If not ndarray or wrong dtype
    """
    if not isinstance(arr, np.ndarray):
        msg: str = f"Expected ndarray for {label}, got {type(arr)}"
        raise TypeError(msg)
    if arr.dtype != np.float32:
        msg = f"Expected float32 for {label}, got {arr.dtype}"
        raise TypeError(msg)
    return arr


class GoogleSpeechSynthesizer(SynthesizerBackend):
    """Performs speech synthesis using gTTS.

    gTTS returns an MP3 stream. The stream is decoded to float32 PCM with soundfile and handed to the
    audio sink; the sample rate is left unchanged. The voice catalog is the gTTS language list, fetched
    in a worker thread the first time it is needed.
    """

    def __init__(self, sink: AudioSink | None, *, tld: str = "com", volume: int = 100) -> None:
        """Initialize the synthesizer.

        Args:
            sink (AudioSink | None): Audio output. Without one, synthesis is reported as unsupported.
            tld (str): Top-level domain of the Google host, e.g. 'com' or 'co.jp'.
            volume (int): Playback volume in percent, 0-200.
        """
        logger.debug("%s initializing", self.__class__.__name__)
        self._sink: AudioSink | None = sink
        self._tld: str = tld
        self._volume: int = volume
        self._voices: list[Voice] = []
        self._voices_ready: asyncio.Event | None = None
        self._catalog_task: asyncio.Task[None] | None = None

    @property
    def is_available(self) -> bool:
        return self._sink is not None

    def get_voices(self) -> list[Voice]:
        return list(self._voices)

    async def _load_catalog(self) -> None:
        ready: asyncio.Event = self._ensure_ready_event()
        try:
            langs: dict[str, str] = await asyncio.to_thread(tts_langs)
            self._voices = [Voice(name=name, lang=code) for code, name in sorted(langs.items())]
            logger.info("gTTS voice catalog loaded (%d languages)", len(self._voices))
        except (RuntimeError, ValueError, OSError) as err:
            logger.error("Failed to load gTTS voice catalog: %s", err)
        finally:
            ready.set()

    def _ensure_ready_event(self) -> asyncio.Event:
        if self._voices_ready is None:
            self._voices_ready = asyncio.Event()
        return self._voices_ready

    def preload_voices(self) -> None:
        """Start loading the voice catalog in the background."""
        if self._catalog_task is None:
            self._catalog_task = asyncio.create_task(self._load_catalog())

    async def wait_voices_ready(self) -> None:
        self.preload_voices()
        await self._ensure_ready_event().wait()

    async def speak(self, text: str, lang: str, voice: Voice | None) -> None:
        if self._sink is None:
            msg = "No audio output device is configured"
            raise SpeechSynthesisError(msg)
        lang_code: str = voice.lang if voice is not None else lang
        try:
            mp3_data = BytesIO()
            gtts: gTTS = gTTS(text, lang=lang_code, tld=self._tld)
            await asyncio.to_thread(gtts.write_to_fp, mp3_data)

            # write_to_fp leaves the file pointer at EOF.
            mp3_data.seek(0)
            raw_pcm, samplerate = soundfile.read(mp3_data, dtype="float32")
            raw_pcm = _ensure_float32_array(raw_pcm, "mp3 audio data")
            logger.debug("sampling rate=%d", samplerate)

            if self._volume != 100:
                raw_pcm *= max(min(self._volume, 200), 0) / 100.0

            await self._sink.play(raw_pcm, int(samplerate))
        except gTTSError as err:
            msg = f"gTTS Internal Error: {err}"
            raise SpeechSynthesisError(msg) from err
        except (soundfile.LibsndfileError, soundfile.SoundFileRuntimeError) as err:
            msg = f"SoundFile Error: {err}"
            raise SpeechSynthesisError(msg) from err
        except (AssertionError, OSError, AttributeError, TypeError, ValueError) as err:
            msg = f"An error occurred in the TTS process: {err}"
            raise SpeechSynthesisError(msg) from err

    def cancel(self) -> None:
        if self._sink is not None:
            self._sink.stop()

    def close(self) -> None:
        if self._catalog_task is not None and not self._catalog_task.done():
            self._catalog_task.cancel()
        if self._sink is not None:
            self._sink.close()
