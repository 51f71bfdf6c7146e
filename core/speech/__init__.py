"""Speech input and output.

The controllers coordinate recording sessions and playback; the platform capabilities are supplied
through `RecognizerBackend` and `SynthesizerBackend` implementations.
"""

from core.speech.input_controller import SpeechInputController
from core.speech.interface import (
    AudioSink,
    RecognizerBackend,
    SpeechAudioCaptureError,
    SpeechError,
    SpeechNetworkError,
    SpeechNoSpeechDetectedError,
    SpeechOfflineError,
    SpeechPermissionDeniedError,
    SpeechRecognitionError,
    SpeechSynthesisError,
    SpeechUnsupportedError,
    SynthesizerBackend,
)
from core.speech.output_controller import SpeechOutputController

__all__: list[str] = [
    "AudioSink",
    "RecognizerBackend",
    "SpeechAudioCaptureError",
    "SpeechError",
    "SpeechInputController",
    "SpeechNetworkError",
    "SpeechNoSpeechDetectedError",
    "SpeechOfflineError",
    "SpeechOutputController",
    "SpeechPermissionDeniedError",
    "SpeechRecognitionError",
    "SpeechSynthesisError",
    "SpeechUnsupportedError",
    "SynthesizerBackend",
]
