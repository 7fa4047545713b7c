"""Provider-facing services: speech-to-text, text-to-speech and translation."""

from .stt import MAX_AUDIO_BYTES, AudioPayload, TranscriptResult, transcribe
from .translate import (
    MyMemoryProvider,
    OpenAIChatProvider,
    TranslationProvider,
    default_providers,
    translate,
    translate_with_provider,
)
from .tts import MAX_TEXT_LENGTH, SynthesisRequest, SynthesisResult, synthesize

__all__ = [
    "MAX_AUDIO_BYTES",
    "MAX_TEXT_LENGTH",
    "AudioPayload",
    "TranscriptResult",
    "transcribe",
    "SynthesisRequest",
    "SynthesisResult",
    "synthesize",
    "TranslationProvider",
    "MyMemoryProvider",
    "OpenAIChatProvider",
    "default_providers",
    "translate",
    "translate_with_provider",
]
