"""Microphone capture lifecycle.

A :class:`Recorder` owns at most one :class:`RecordingSession` at a time and
moves through ``IDLE -> RECORDING -> FINALIZING -> IDLE``. Audio arrives by
push from the capture callback; nothing polls the device.
"""

from __future__ import annotations

import enum
import io
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Protocol

from .errors import DeviceError, InvalidRequest, TranscriptionBusy
from .services.stt import AudioPayload, TranscriptResult, transcribe

LOGGER = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]
Transcriber = Callable[[AudioPayload, str], Awaitable[TranscriptResult]]


class RecordingState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"


class CaptureHandle(Protocol):
    def close(self) -> None: ...


class MicrophoneSource(ABC):
    """Something that can push audio chunks while it is open."""

    mime_type: str = "audio/wav"

    @abstractmethod
    def open(self, on_chunk: ChunkCallback) -> CaptureHandle:
        """Start capturing; raise :class:`DeviceError` when the device is unavailable."""

    def encode(self, raw: bytes) -> bytes:
        """Wrap the concatenated chunks in the container named by ``mime_type``."""
        return raw


class SoundDeviceMicrophone(MicrophoneSource):
    """Microphone capture through PortAudio (``sounddevice``), encoded as WAV."""

    mime_type = "audio/wav"

    def __init__(self, samplerate: int = 16000, channels: int = 1, device: int | str | None = None) -> None:
        self.samplerate = samplerate
        self.channels = channels
        self.device = device

    def open(self, on_chunk: ChunkCallback) -> CaptureHandle:
        try:
            import sounddevice as sd
        except OSError as exc:  # PortAudio library missing
            raise DeviceError(f"Microphone unavailable: {exc}", provider="sounddevice") from exc

        def callback(indata, _frames, _time_info, status) -> None:
            if status:
                LOGGER.warning("Audio callback status: %s", status)
            on_chunk(bytes(indata))

        try:
            stream = sd.RawInputStream(
                samplerate=self.samplerate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                callback=callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exc:
            raise DeviceError(f"Microphone unavailable: {exc}", provider="sounddevice") from exc
        return _StreamHandle(stream)

    def encode(self, raw: bytes) -> bytes:
        import numpy as np
        import soundfile as sf

        samples = np.frombuffer(raw, dtype=np.int16).reshape(-1, self.channels)
        buffer = io.BytesIO()
        sf.write(buffer, samples, self.samplerate, format="WAV", subtype="PCM_16")
        return buffer.getvalue()


class _StreamHandle:
    def __init__(self, stream: Any) -> None:
        self._stream = stream

    def close(self) -> None:
        try:
            self._stream.stop()
        finally:
            self._stream.close()


class RecordingSession:
    """Chunks captured for one recording, finalized into a single payload."""

    def __init__(self, language: str, mime_type: str = "audio/wav") -> None:
        self.language = language
        self.mime_type = mime_type
        self.chunks: list[bytes] = []
        self.closed = False
        self._lock = threading.Lock()

    def append(self, chunk: bytes) -> None:
        # Called from the capture thread; late chunks after close are ignored.
        if not chunk:
            return
        with self._lock:
            if self.closed:
                return
            self.chunks.append(chunk)

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return sum(len(chunk) for chunk in self.chunks)

    def finalize(self, encode: Callable[[bytes], bytes] | None = None) -> AudioPayload | None:
        """Close the session and return its payload, or ``None`` if nothing was captured."""

        with self._lock:
            if self.closed:
                return None
            self.closed = True
            chunks, self.chunks = self.chunks, []
        if not chunks:
            return None
        raw = b"".join(chunks)
        data = encode(raw) if encode else raw
        return AudioPayload(data=data, mime_type=self.mime_type, language=self.language)

    def discard(self) -> None:
        with self._lock:
            self.closed = True
            self.chunks = []


class Recorder:
    """UI-facing controller for one microphone and its transcriptions."""

    def __init__(
        self,
        source: MicrophoneSource,
        transcriber: Transcriber = transcribe,
        default_language: str = "en-US",
    ) -> None:
        self.source = source
        self.transcriber = transcriber
        self.default_language = default_language
        self.state = RecordingState.IDLE
        self.transcribing = False
        self.session: RecordingSession | None = None
        self._handle: CaptureHandle | None = None

    def start(self, language: str | None = None) -> None:
        if self.state is not RecordingState.IDLE:
            raise InvalidRequest(f"Cannot start recording while {self.state.value}")

        session = RecordingSession(language or self.default_language, self.source.mime_type)
        # DeviceError propagates and leaves the recorder idle.
        self._handle = self.source.open(session.append)
        self.session = session
        self.state = RecordingState.RECORDING
        LOGGER.info("Recording started (language=%s)", session.language)

    async def stop(self) -> TranscriptResult | None:
        """Stop recording and transcribe what was captured.

        Returns ``None`` when not recording or when no audio arrived. Raises
        :class:`TranscriptionBusy` if an earlier transcription is still running.
        """

        if self.state is not RecordingState.RECORDING:
            return None

        self.state = RecordingState.FINALIZING
        session = self.session
        try:
            self._release_device()
            payload = session.finalize(self.source.encode) if session else None
        finally:
            if session is not None:
                session.discard()
            self.session = None
            self.state = RecordingState.IDLE

        if payload is None:
            LOGGER.info("Recording stopped with no audio; skipping transcription")
            return None
        return await self.submit(payload)

    async def submit(self, payload: AudioPayload) -> TranscriptResult:
        """Transcribe *payload* unless another transcription is in flight."""

        if self.transcribing:
            LOGGER.warning("Dropping %d-byte recording: transcription already in progress", payload.size)
            raise TranscriptionBusy("A transcription is already in progress")

        self.transcribing = True
        try:
            return await self.transcriber(payload, payload.language or self.default_language)
        finally:
            self.transcribing = False

    def abort(self) -> None:
        if self.state is not RecordingState.RECORDING:
            return
        try:
            self._release_device()
        finally:
            if self.session is not None:
                self.session.discard()
            self.session = None
            self.state = RecordingState.IDLE
            LOGGER.info("Recording aborted")

    def _release_device(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()


__all__ = [
    "RecordingState",
    "MicrophoneSource",
    "SoundDeviceMicrophone",
    "RecordingSession",
    "Recorder",
]
