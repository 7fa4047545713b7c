"""Configuration helpers shared by the web API and the command line."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
import json
import logging
import os
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path(os.environ.get("LINGUAVOX_HOME", Path.home() / ".linguavox"))
SETTINGS_PATH = CONFIG_DIR / "settings.json"

DEFAULT_TRANSLATION_PROVIDERS = ("mymemory", "openai")


@dataclass(slots=True)
class Settings:
    """Runtime defaults; provider credentials live in the environment, not here."""

    default_stt_language: str = "en-US"
    default_source_language: str = "en"
    default_target_language: str = "es"
    default_tts_language: str = "en"
    translation_providers: list[str] = field(default_factory=lambda: list(DEFAULT_TRANSLATION_PROVIDERS))
    tts_speech_rate: str = "0"
    tts_codec: str = "wav"
    tts_audio_format: str = "16khz_16bit_stereo"
    mymemory_email: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Settings":
        """Create :class:`Settings` from any mapping, ignoring unknown keys."""
        defaults = cls()
        return cls(
            default_stt_language=str(payload.get("default_stt_language") or defaults.default_stt_language),
            default_source_language=str(payload.get("default_source_language") or defaults.default_source_language),
            default_target_language=str(payload.get("default_target_language") or defaults.default_target_language),
            default_tts_language=str(payload.get("default_tts_language") or defaults.default_tts_language),
            translation_providers=_coerce_provider_list(payload.get("translation_providers")),
            tts_speech_rate=_coerce_speech_rate(payload.get("tts_speech_rate"), defaults.tts_speech_rate),
            tts_codec=str(payload.get("tts_codec") or defaults.tts_codec),
            tts_audio_format=str(payload.get("tts_audio_format") or defaults.tts_audio_format),
            mymemory_email=_coerce_optional_str(payload.get("mymemory_email")),
        )

    def to_mapping(self) -> dict[str, Any]:
        """Serialize to a mapping suitable for JSON dumps."""
        return asdict(self)

    def with_environment(self) -> "Settings":
        """Apply ``VOICERSS_*`` quality flags and ``MYMEMORY_EMAIL`` from the environment."""
        payload = self.to_mapping()
        for key, env_name in (
            ("tts_speech_rate", "VOICERSS_RATE"),
            ("tts_codec", "VOICERSS_CODEC"),
            ("tts_audio_format", "VOICERSS_FORMAT"),
            ("mymemory_email", "MYMEMORY_EMAIL"),
        ):
            value = os.getenv(env_name)
            if value:
                payload[key] = value
        return Settings.from_mapping(payload)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk, falling back to defaults on any problem."""

    settings_path = path or SETTINGS_PATH
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        LOGGER.debug("No settings.json found at %s; using defaults", settings_path)
        return Settings()
    except OSError as exc:  # pragma: no cover - filesystem failure
        LOGGER.warning("Failed reading settings at %s: %s", settings_path, exc)
        return Settings()

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Invalid JSON in %s: %s", settings_path, exc)
        return Settings()
    if not isinstance(payload, dict):
        LOGGER.warning("Ignoring settings in %s: expected a JSON object", settings_path)
        return Settings()

    return Settings.from_mapping(payload)


def save_settings(settings: Settings, path: Path | None = None) -> None:
    """Persist settings to disk in JSON format."""

    settings_path = path or SETTINGS_PATH
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(settings.to_mapping(), indent=2, sort_keys=True)
    settings_path.write_text(payload, encoding="utf-8")
    LOGGER.debug("Saved settings to %s", settings_path)


def _coerce_provider_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [item for item in value.split(",")]
    if not isinstance(value, (list, tuple)):
        return list(DEFAULT_TRANSLATION_PROVIDERS)
    names = [str(item).strip().lower() for item in value if str(item).strip()]
    return names or list(DEFAULT_TRANSLATION_PROVIDERS)


def _coerce_optional_str(value: Any) -> str | None:
    if value in (None, ""):
        return None
    return str(value)


def _coerce_speech_rate(value: Any, default: str) -> str:
    # "0" (normal speed) is a real value; only null or blank fall back.
    if value is None or str(value).strip() == "":
        return default
    return str(value).strip()


__all__ = [
    "Settings",
    "load_settings",
    "save_settings",
    "CONFIG_DIR",
    "SETTINGS_PATH",
    "DEFAULT_TRANSLATION_PROVIDERS",
]
