"""Text-to-speech helpers backed by VoiceRSS."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Final

import httpx

from ..config import Settings
from ..errors import InvalidRequest, SynthesisError, from_httpx_error
from ..registry import resolve_voice_selector
from ._client import require_env

LOGGER = logging.getLogger(__name__)

PROVIDER_NAME: Final[str] = "voicerss"
VOICERSS_URL: Final[str] = "https://api.voicerss.org/"
MAX_TEXT_LENGTH: Final[int] = 500
CODEC_MIME_TYPES: Final[dict[str, str]] = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "aac": "audio/aac",
    "caf": "audio/x-caf",
}


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    """Text plus a language or voice selector.

    ``volume`` and ``rate`` travel with the request but VoiceRSS does not
    take them inline; :mod:`linguavox_core.playback` applies them.
    """

    text: str
    voice: str
    volume: float = 1.0
    rate: float = 1.0

    def validate(self) -> None:
        if not self.text or not self.text.strip():
            raise InvalidRequest("Missing text")
        if not self.voice or not self.voice.strip():
            raise InvalidRequest("Missing language or voice")
        if not 0.0 <= self.volume <= 1.0:
            raise InvalidRequest(f"Volume must be between 0 and 1, got {self.volume}")
        if self.rate <= 0:
            raise InvalidRequest(f"Rate must be positive, got {self.rate}")


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    audio: bytes
    mime_type: str = "audio/wav"

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.audio).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def build_form(req: SynthesisRequest, settings: Settings, api_key: str) -> dict[str, str]:
    """Build the VoiceRSS form fields, truncating the text to the provider limit."""

    text = req.text[:MAX_TEXT_LENGTH]
    if len(req.text) > MAX_TEXT_LENGTH:
        LOGGER.info("Truncating TTS input from %d to %d characters", len(req.text), MAX_TEXT_LENGTH)
    return {
        "key": api_key,
        "src": text,
        "hl": resolve_voice_selector(req.voice),
        "r": settings.tts_speech_rate,
        "c": settings.tts_codec,
        "f": settings.tts_audio_format,
    }


async def synthesize(
    req: SynthesisRequest,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> SynthesisResult:
    """Generate speech for *req* and return it as a self-contained audio asset."""

    req.validate()
    settings = (settings or Settings()).with_environment()
    api_key = require_env("VOICERSS_API_KEY", PROVIDER_NAME)
    form = build_form(req, settings, api_key)
    LOGGER.info("Generating speech using voice %s (%d chars)", form["hl"], len(form["src"]))

    try:
        if client is None:
            async with httpx.AsyncClient() as owned:
                response = await _post(owned, form)
        else:
            response = await _post(client, form)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        normalized = from_httpx_error(PROVIDER_NAME, exc)
        LOGGER.warning("TTS call failed: %s", normalized)
        raise normalized from exc

    audio = response.content
    # VoiceRSS reports most failures as a 200 with a plain-text body.
    if not audio or audio[:6] == b"ERROR:":
        message = audio.decode("utf-8", errors="replace").strip() or "Empty audio response"
        raise SynthesisError("Text-to-speech failed", provider=PROVIDER_NAME, details=message)

    mime_type = CODEC_MIME_TYPES.get(settings.tts_codec.lower(), "application/octet-stream")
    LOGGER.debug("Received %d bytes of %s audio", len(audio), mime_type)
    return SynthesisResult(audio=audio, mime_type=mime_type)


async def _post(client: httpx.AsyncClient, form: dict[str, str]) -> httpx.Response:
    response = await client.post(VOICERSS_URL, data=form)
    response.raise_for_status()
    return response


__all__ = [
    "SynthesisRequest",
    "SynthesisResult",
    "MAX_TEXT_LENGTH",
    "build_form",
    "synthesize",
]
