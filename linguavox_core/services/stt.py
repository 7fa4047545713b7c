"""Speech-to-text helper functions."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, Final

import openai

from ..errors import InvalidRequest, LinguavoxError, PayloadTooLarge, TranscriptionError, from_openai_error
from ..registry import stt_language_hint
from ._client import get_openai_client
from .text_utils import format_structured_text

LOGGER = logging.getLogger(__name__)

PROVIDER_NAME: Final[str] = "openai-whisper"
MAX_AUDIO_BYTES: Final[int] = 25 * 1024 * 1024
TRANSCRIBE_MODEL: Final[str] = "whisper-1"
DEFAULT_CONFIDENCE: Final[float] = 1.0
MIME_EXTENSIONS: Final[dict[str, str]] = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/flac": "flac",
}


@dataclass(frozen=True, slots=True)
class AudioPayload:
    """A finalized recording, ready to be transcribed once."""

    data: bytes
    mime_type: str = "audio/wav"
    language: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class TranscriptResult:
    text: str
    # Whisper reports no confidence; unknown is treated as fully trusted.
    confidence: float = DEFAULT_CONFIDENCE

    def to_mapping(self) -> dict[str, Any]:
        return {"transcript": self.text, "confidence": self.confidence}


async def transcribe(
    payload: AudioPayload,
    language: str | None = None,
    *,
    client: Any = None,
) -> TranscriptResult:
    """Transcribe *payload* with OpenAI Whisper.

    *language* defaults to the language recorded on the payload. Codes that
    are not in the STT registry fall back to English instead of failing.
    A failed call is not retried.
    """

    if payload.size > MAX_AUDIO_BYTES:
        raise PayloadTooLarge(
            "Audio file too large. Maximum 25MB allowed.",
            details={"size": payload.size, "limit": MAX_AUDIO_BYTES},
        )
    if not payload.data:
        raise InvalidRequest("Audio payload is empty")

    hint = stt_language_hint(language or payload.language)
    LOGGER.info(
        "Transcribing audio blob (mimetype=%s, bytes=%d, language=%s)",
        payload.mime_type,
        payload.size,
        hint,
    )

    buffer = io.BytesIO(payload.data)
    buffer.name = f"recording.{_extension_for(payload.mime_type)}"  # type: ignore[attr-defined]

    try:
        client = client or get_openai_client()
        response = await client.audio.transcriptions.create(
            model=TRANSCRIBE_MODEL,
            file=buffer,
            language=hint,
        )
    except openai.OpenAIError as exc:
        normalized = from_openai_error(PROVIDER_NAME, exc)
        LOGGER.warning("Transcription call failed: %s", normalized)
        raise TranscriptionError(
            normalized.message,
            provider=PROVIDER_NAME,
            details=normalized.body if normalized.body is not None else normalized.message,
        ) from exc
    except LinguavoxError as exc:
        raise TranscriptionError(exc.message, provider=PROVIDER_NAME) from exc

    text = getattr(response, "text", None)
    if not isinstance(text, str):
        raise TranscriptionError("Speech-to-text transcription failed", provider=PROVIDER_NAME, details="malformed response")
    LOGGER.debug("Received transcription response")
    return TranscriptResult(text=format_structured_text(text))


def _extension_for(mime_type: str) -> str:
    base = mime_type.split(";", 1)[0].strip().lower()
    return MIME_EXTENSIONS.get(base, "wav")


__all__ = [
    "AudioPayload",
    "TranscriptResult",
    "MAX_AUDIO_BYTES",
    "DEFAULT_CONFIDENCE",
    "transcribe",
]
