"""Speech synthesis backends.

`PyAudioSink` lives in `core.speech.engines.pyaudio_sink` and needs the optional `audio` extra.
"""

from core.speech.engines.g_tts import GoogleSpeechSynthesizer

__all__: list[str] = ["GoogleSpeechSynthesizer"]
