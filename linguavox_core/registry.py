"""Language and voice tables for every provider.

Each capability keeps its own registry. A code that is valid for speech
recognition is not necessarily valid for synthesis or translation, so the
tables are deliberately independent.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

LOGGER = logging.getLogger(__name__)


class Gender(str, enum.Enum):
    FEMALE = "female"
    MALE = "male"
    UNSPECIFIED = "unspecified"


@dataclass(frozen=True, slots=True)
class VoiceOption:
    provider_voice_id: str
    display_name: str
    gender: Gender = Gender.UNSPECIFIED

    def to_mapping(self) -> dict[str, str]:
        return {
            "providerVoiceId": self.provider_voice_id,
            "displayName": self.display_name,
            "gender": self.gender.value,
        }


# ----------------------------------------------------------------------
# Speech-to-text (Whisper language hints)
# ----------------------------------------------------------------------

DEFAULT_STT_LANGUAGE: Final[str] = "en"

STT_LANGUAGES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "en-US": "en",
        "en-GB": "en",
        "es": "es",
        "fr": "fr",
        "de": "de",
        "it": "it",
        "pt": "pt",
        "ru": "ru",
        "zh": "zh",
        "ja": "ja",
        "ar": "ar",
    }
)

STT_LANGUAGE_NAMES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "en-US": "US English",
        "en-GB": "UK English",
        "es": "Spanish",
        "fr": "French",
        "de": "German",
        "it": "Italian",
        "pt": "Portuguese",
        "ru": "Russian",
        "zh": "Chinese",
        "ja": "Japanese",
        "ar": "Arabic",
    }
)


def stt_language_hint(code: str | None) -> str:
    """Return the Whisper hint for *code*, falling back to English."""

    if code and code in STT_LANGUAGES:
        return STT_LANGUAGES[code]
    LOGGER.info("No STT mapping for %r; using %s", code, DEFAULT_STT_LANGUAGE)
    return DEFAULT_STT_LANGUAGE


# ----------------------------------------------------------------------
# Text-to-speech (VoiceRSS ``hl`` values)
# ----------------------------------------------------------------------

_F = Gender.FEMALE
_M = Gender.MALE

LANGUAGE_VOICES: Final[Mapping[str, tuple[VoiceOption, ...]]] = MappingProxyType(
    {
        "en": (
            VoiceOption("en-us", "US English (Female)", _F),
            VoiceOption("en-gb", "UK English (Male)", _M),
            VoiceOption("en-au", "Australian English (Female)", _F),
        ),
        "es": (
            VoiceOption("es-es", "Spanish (Female)", _F),
            VoiceOption("es-mx", "Mexican Spanish (Male)", _M),
        ),
        "fr": (
            VoiceOption("fr-fr", "French (Female)", _F),
            VoiceOption("fr-ca", "Canadian French (Male)", _M),
        ),
        "de": (VoiceOption("de-de", "German (Female)", _F),),
        "it": (VoiceOption("it-it", "Italian (Female)", _F),),
        "ja": (VoiceOption("ja-jp", "Japanese (Female)", _F),),
        "ko": (VoiceOption("ko-kr", "Korean (Female)", _F),),
        "zh": (VoiceOption("zh-cn", "Chinese (Female)", _F),),
        "pt": (
            VoiceOption("pt-br", "Brazilian Portuguese (Female)", _F),
            VoiceOption("pt-pt", "European Portuguese (Male)", _M),
        ),
        "ru": (VoiceOption("ru-ru", "Russian (Female)", _F),),
        "ar": (VoiceOption("ar-sa", "Arabic (Female)", _F),),
        "hi": (VoiceOption("hi-in", "Hindi (Female)", _F),),
    }
)

_VOICE_IDS: Final[frozenset[str]] = frozenset(
    voice.provider_voice_id for voices in LANGUAGE_VOICES.values() for voice in voices
)


def voices_for(language: str) -> tuple[VoiceOption, ...]:
    return LANGUAGE_VOICES.get(language, ())


def default_voice(language: str) -> VoiceOption | None:
    voices = voices_for(language)
    return voices[0] if voices else None


def resolve_voice_selector(selector: str) -> str:
    """Turn a language code or voice id into a VoiceRSS ``hl`` value.

    A bare language (``"es"``) resolves to its first voice. Voice ids are
    matched case-insensitively (``"en-US"`` and ``"en-us"`` are the same).
    Anything else is forwarded unchanged, lower-cased, and left for the
    provider to accept or reject.
    """

    key = selector.strip()
    voice = default_voice(key)
    if voice is not None:
        return voice.provider_voice_id
    lowered = key.lower()
    if lowered not in _VOICE_IDS:
        LOGGER.warning("Unknown TTS voice selector %r; forwarding as-is", selector)
    return lowered


# ----------------------------------------------------------------------
# Translation
# ----------------------------------------------------------------------

TRANSLATION_LANGUAGES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "en": "English",
        "es": "Spanish",
        "fr": "French",
        "de": "German",
        "it": "Italian",
        "pt": "Portuguese",
        "ru": "Russian",
        "ja": "Japanese",
        "ko": "Korean",
        "zh": "Chinese",
        "ar": "Arabic",
        "hi": "Hindi",
    }
)

# MyMemory wants a script/region for Chinese; everything else is ISO 639-1.
_MYMEMORY_CODES: Final[Mapping[str, str]] = MappingProxyType({"zh": "zh-CN"})


def mymemory_language(code: str) -> str:
    return _MYMEMORY_CODES.get(code, code)


def translation_language_name(code: str) -> str:
    return TRANSLATION_LANGUAGES.get(code, code)


__all__ = [
    "Gender",
    "VoiceOption",
    "DEFAULT_STT_LANGUAGE",
    "STT_LANGUAGES",
    "STT_LANGUAGE_NAMES",
    "LANGUAGE_VOICES",
    "TRANSLATION_LANGUAGES",
    "stt_language_hint",
    "voices_for",
    "default_voice",
    "resolve_voice_selector",
    "mymemory_language",
    "translation_language_name",
]
