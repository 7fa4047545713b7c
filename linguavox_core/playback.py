"""Local playback of synthesized audio, applying volume and rate."""

from __future__ import annotations

import io
import logging

import numpy as np
import soundfile as sf

from .errors import DeviceError, InvalidRequest, SynthesisError
from .services.tts import SynthesisResult

LOGGER = logging.getLogger(__name__)


def prepare(result: SynthesisResult, volume: float = 1.0, rate: float = 1.0) -> tuple[np.ndarray, int]:
    """Decode *result* and return ``(samples, samplerate)`` ready for playback.

    Volume scales the samples; rate scales the playback sample rate, which
    changes speed and pitch together.
    """

    if not 0.0 <= volume <= 1.0:
        raise InvalidRequest(f"Volume must be between 0 and 1, got {volume}")
    if rate <= 0:
        raise InvalidRequest(f"Rate must be positive, got {rate}")
    try:
        data, samplerate = sf.read(io.BytesIO(result.audio), dtype="float32", always_2d=True)
    except RuntimeError as exc:
        raise SynthesisError("Could not decode synthesized audio", details=str(exc)) from exc
    return data * np.float32(volume), max(1, int(round(samplerate * rate)))


def play(result: SynthesisResult, volume: float = 1.0, rate: float = 1.0) -> None:
    """Play *result* on the default output device and block until it ends."""

    data, samplerate = prepare(result, volume, rate)
    try:
        import sounddevice as sd
    except OSError as exc:  # PortAudio library missing
        raise DeviceError(f"Audio output unavailable: {exc}", provider="sounddevice") from exc

    LOGGER.info("Playing %.2fs of audio (volume=%.2f, rate=%.2f)", len(data) / samplerate, volume, rate)
    try:
        sd.play(data, samplerate)
        sd.wait()
    except sd.PortAudioError as exc:
        raise DeviceError(f"Audio output unavailable: {exc}", provider="sounddevice") from exc
    finally:
        sd.stop()


__all__ = ["prepare", "play"]
