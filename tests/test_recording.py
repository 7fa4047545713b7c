from __future__ import annotations

import asyncio
import io

import numpy as np
import pytest
import soundfile as sf

from linguavox_core.errors import DeviceError, InvalidRequest, TranscriptionBusy, TranscriptionError
from linguavox_core.recording import (
    MicrophoneSource,
    Recorder,
    RecordingSession,
    RecordingState,
    SoundDeviceMicrophone,
)
from linguavox_core.services.stt import TranscriptResult


class FakeHandle:
    def __init__(self, mic: "FakeMicrophone") -> None:
        self.mic = mic

    def close(self) -> None:
        self.mic.closed += 1


class FakeMicrophone(MicrophoneSource):
    mime_type = "audio/webm"

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.opened = 0
        self.closed = 0
        self.push = None

    def open(self, on_chunk):
        if self.fail:
            raise DeviceError("Permission denied")
        self.opened += 1
        self.push = on_chunk
        return FakeHandle(self)


class FakeTranscriber:
    def __init__(self, gate: asyncio.Event | None = None, error: Exception | None = None) -> None:
        self.calls = []
        self.gate = gate
        self.error = error

    async def __call__(self, payload, language):
        self.calls.append((payload, language))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return TranscriptResult(f"heard {len(payload.data)} bytes")


def test_stop_while_idle_is_a_noop():
    mic = FakeMicrophone()
    transcriber = FakeTranscriber()
    recorder = Recorder(mic, transcriber)

    assert asyncio.run(recorder.stop()) is None
    assert recorder.state is RecordingState.IDLE
    assert mic.opened == 0 and mic.closed == 0
    assert transcriber.calls == []


def test_recording_produces_one_payload_and_releases_device():
    mic = FakeMicrophone()
    transcriber = FakeTranscriber()
    recorder = Recorder(mic, transcriber)

    recorder.start("es")
    assert recorder.state is RecordingState.RECORDING
    mic.push(b"ab")
    mic.push(b"")
    mic.push(b"cd")

    result = asyncio.run(recorder.stop())

    assert result.text == "heard 4 bytes"
    assert result.confidence == 1.0
    assert mic.closed == 1
    assert recorder.state is RecordingState.IDLE
    assert recorder.session is None
    payload, language = transcriber.calls[0]
    assert payload.data == b"abcd"
    assert payload.mime_type == "audio/webm"
    assert language == "es"
    assert len(transcriber.calls) == 1

    # A second stop finds the recorder idle and transcribes nothing.
    assert asyncio.run(recorder.stop()) is None
    assert len(transcriber.calls) == 1


def test_empty_recording_skips_transcription():
    mic = FakeMicrophone()
    transcriber = FakeTranscriber()
    recorder = Recorder(mic, transcriber)

    recorder.start()
    assert asyncio.run(recorder.stop()) is None
    assert transcriber.calls == []
    assert mic.closed == 1
    assert recorder.state is RecordingState.IDLE


def test_default_language_is_used_when_none_given():
    mic = FakeMicrophone()
    transcriber = FakeTranscriber()
    recorder = Recorder(mic, transcriber, default_language="ja")

    recorder.start()
    mic.push(b"x")
    asyncio.run(recorder.stop())
    assert transcriber.calls[0][1] == "ja"


def test_start_is_only_valid_from_idle():
    mic = FakeMicrophone()
    recorder = Recorder(mic, FakeTranscriber())
    recorder.start()

    with pytest.raises(InvalidRequest):
        recorder.start()
    assert mic.opened == 1


def test_device_failure_leaves_recorder_idle():
    recorder = Recorder(FakeMicrophone(fail=True), FakeTranscriber())

    with pytest.raises(DeviceError):
        recorder.start()
    assert recorder.state is RecordingState.IDLE
    assert recorder.session is None


def test_abort_releases_device_and_discards_audio():
    mic = FakeMicrophone()
    transcriber = FakeTranscriber()
    recorder = Recorder(mic, transcriber)

    recorder.start()
    session = recorder.session
    mic.push(b"data")
    recorder.abort()

    assert mic.closed == 1
    assert recorder.state is RecordingState.IDLE
    assert session.finalize() is None
    assert asyncio.run(recorder.stop()) is None
    assert transcriber.calls == []


def test_session_never_yields_a_second_payload():
    session = RecordingSession("en")
    session.append(b"one")
    first = session.finalize()
    session.append(b"late chunk")

    assert first.data == b"one"
    assert session.finalize() is None
    assert session.total_bytes == 0


def test_payload_arriving_during_transcription_is_dropped():
    async def scenario():
        gate = asyncio.Event()
        mic = FakeMicrophone()
        transcriber = FakeTranscriber(gate=gate)
        recorder = Recorder(mic, transcriber)

        recorder.start()
        mic.push(b"first")
        first = asyncio.create_task(recorder.stop())
        await asyncio.sleep(0)
        assert recorder.transcribing
        assert recorder.state is RecordingState.IDLE

        recorder.start()
        mic.push(b"second")
        with pytest.raises(TranscriptionBusy):
            await recorder.stop()
        assert mic.closed == 2

        gate.set()
        result = await first
        return result, transcriber, recorder

    result, transcriber, recorder = asyncio.run(scenario())
    assert result.text == "heard 5 bytes"
    assert [payload.data for payload, _ in transcriber.calls] == [b"first"]
    assert recorder.transcribing is False


def test_transcription_failure_clears_busy_flag():
    mic = FakeMicrophone()
    recorder = Recorder(mic, FakeTranscriber(error=TranscriptionError("provider down")))

    recorder.start()
    mic.push(b"x")
    with pytest.raises(TranscriptionError):
        asyncio.run(recorder.stop())
    assert recorder.transcribing is False
    assert recorder.state is RecordingState.IDLE
    assert mic.closed == 1


def test_sounddevice_microphone_encodes_pcm_as_wav():
    samples = (np.sin(np.linspace(0, 20, 1600)) * 3000).astype(np.int16)
    wav = SoundDeviceMicrophone(samplerate=16000).encode(samples.tobytes())

    data, samplerate = sf.read(io.BytesIO(wav), dtype="int16")
    assert samplerate == 16000
    assert len(data) == 1600
    assert np.array_equal(data, samples)
