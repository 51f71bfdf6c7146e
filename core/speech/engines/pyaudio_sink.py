from __future__ import annotations

import asyncio
import contextlib
from functools import partial
from typing import TYPE_CHECKING, Any

import numpy as np
import pyaudio

from core.speech.interface import AudioSink, SpeechSynthesisError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["PyAudioSink"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class _PcmCursor:
    """Read position over a PCM buffer shared with the PyAudio callback thread."""

    def __init__(self, pcm: np.ndarray[Any, np.dtype[np.float32]]) -> None:
        self.pcm: np.ndarray[Any, np.dtype[np.float32]] = pcm
        self.position: int = 0
        self.stopped: bool = False

    def read(self, frames: int) -> np.ndarray[Any, np.dtype[np.float32]]:
        chunk = self.pcm[self.position : self.position + frames]
        self.position += chunk.shape[0]
        return chunk


def _stream_callback_logic(
    in_data,
    frame_count,
    time_info,
    status,
    /,
    cursor: _PcmCursor,
    loop: asyncio.AbstractEventLoop,
    finished_event: asyncio.Event,
) -> tuple[bytes | None, int]:
    """PyAudio stream callback filling the output buffer from the cursor.

    The first four positional-only arguments are dictated by PyAudio.
    """
    _ = in_data, time_info, status
    try:
        if cursor.stopped:
            loop.call_soon_threadsafe(finished_event.set)
            return (None, pyaudio.paAbort)

        data = cursor.read(frame_count)
        if data.shape[0] < frame_count:
            loop.call_soon_threadsafe(finished_event.set)
            return (data.tobytes(), pyaudio.paComplete)
    except RuntimeError as err:
        # Event loop already closed
        logger.critical("Runtime error in audio callback: %s", err)
        return (None, pyaudio.paAbort)

    return (data.tobytes(), pyaudio.paContinue)


class PyAudioSink(AudioSink):
    """Audio output through PyAudio, playing float32 PCM in callback mode."""

    def __init__(self) -> None:
        self._pyaudio: pyaudio.PyAudio | None = None
        self._cursor: _PcmCursor | None = None

    @property
    def pyaudio(self) -> pyaudio.PyAudio:
        if self._pyaudio is None:
            self._pyaudio = pyaudio.PyAudio()
            logger.info("PyAudio instance created")
        return self._pyaudio

    async def play(self, pcm: np.ndarray[Any, np.dtype[np.float32]], samplerate: int) -> None:
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        finished_event = asyncio.Event()
        cursor = _PcmCursor(np.ascontiguousarray(pcm, dtype=np.float32))
        self._cursor = cursor
        channels: int = 1 if pcm.ndim == 1 else int(pcm.shape[1])
        # 0.2 seconds of audio per buffer.
        frame_buffer_size: int = max(2048, int(samplerate * 0.2))
        logger.debug(
            "Audio properties - Channels: %s, Sampling rate: %s, Buffer size: %s",
            channels,
            samplerate,
            frame_buffer_size,
        )

        stream: pyaudio.Stream | None = None
        try:
            stream = self.pyaudio.open(
                format=pyaudio.paFloat32,
                channels=channels,
                rate=samplerate,
                output=True,
                frames_per_buffer=frame_buffer_size,
                stream_callback=partial(
                    _stream_callback_logic,
                    cursor=cursor,
                    loop=loop,
                    finished_event=finished_event,
                ),
            )
            stream.start_stream()
            await finished_event.wait()
        except OSError as err:
            msg = f"Audio device error: {err}"
            raise SpeechSynthesisError(msg) from err
        finally:
            cursor.stopped = True
            if stream is not None:
                with contextlib.suppress(Exception):
                    stream.stop_stream()
                with contextlib.suppress(Exception):
                    stream.close()
            if self._cursor is cursor:
                self._cursor = None

    def stop(self) -> None:
        if self._cursor is not None:
            self._cursor.stopped = True

    def close(self) -> None:
        if self._pyaudio is not None:
            self._pyaudio.terminate()
            self._pyaudio = None
            logger.info("PyAudio resources released")
