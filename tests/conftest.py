import io

import numpy as np
import pytest
import soundfile as sf

from linguavox.web import create_app


@pytest.fixture()
def wav_bytes() -> bytes:
    duration = 0.25
    samplerate = 16000
    t = np.linspace(0, duration, int(duration * samplerate), endpoint=False)
    tone = 0.1 * np.sin(2 * np.pi * 440 * t)
    buffer = io.BytesIO()
    sf.write(buffer, tone, samplerate, format='WAV')
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def provider_env(monkeypatch):
    monkeypatch.setattr("linguavox_core.services._client.load_dotenv", lambda: None)
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    monkeypatch.setenv("VOICERSS_API_KEY", "test-voicerss-key")
    for name in ("VOICERSS_RATE", "VOICERSS_CODEC", "VOICERSS_FORMAT", "MYMEMORY_EMAIL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def settings_path(monkeypatch, tmp_path):
    path = tmp_path / "cfg" / "settings.json"
    monkeypatch.setattr("linguavox_core.config.SETTINGS_PATH", path)
    return path


@pytest.fixture()
def flask_app(settings_path):
    app = create_app({"TESTING": True})
    yield app


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()
