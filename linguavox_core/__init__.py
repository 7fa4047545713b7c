"""Core orchestration for linguavox: recording, STT, TTS and translation providers."""

from .config import Settings, load_settings, save_settings
from .recording import Recorder, RecordingState, SoundDeviceMicrophone
from .services.stt import AudioPayload, TranscriptResult, transcribe
from .services.translate import default_providers, translate
from .services.tts import SynthesisRequest, SynthesisResult, synthesize

__all__ = [
    "Settings",
    "load_settings",
    "save_settings",
    "Recorder",
    "RecordingState",
    "SoundDeviceMicrophone",
    "AudioPayload",
    "TranscriptResult",
    "transcribe",
    "SynthesisRequest",
    "SynthesisResult",
    "synthesize",
    "default_providers",
    "translate",
]
