"""Flask JSON API for linguavox."""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from linguavox_core import Settings, load_settings, save_settings
from linguavox_core.errors import (
    AllProvidersExhausted,
    ClientError,
    DeviceError,
    InvalidRequest,
    LinguavoxError,
    PayloadTooLarge,
    ProviderRejected,
    ProviderUnreachable,
    SynthesisError,
    TranscriptionBusy,
    TranscriptionError,
)
from linguavox_core.registry import (
    LANGUAGE_VOICES,
    STT_LANGUAGE_NAMES,
    TRANSLATION_LANGUAGES,
)
from linguavox_core.services import (
    MAX_AUDIO_BYTES,
    AudioPayload,
    SynthesisRequest,
    default_providers,
    synthesize,
    transcribe,
    translate_with_provider,
)

LOGGER = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[LinguavoxError], int] = {
    InvalidRequest: 400,
    PayloadTooLarge: 400,
    TranscriptionBusy: 409,
    ProviderUnreachable: 503,
    DeviceError: 503,
    ClientError: 500,
    TranscriptionError: 500,
    AllProvidersExhausted: 502,
    SynthesisError: 502,
}

API = Blueprint("api", __name__, url_prefix="/api")


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        # Above the 25 MiB STT limit so oversized uploads get a JSON error.
        MAX_CONTENT_LENGTH=30 * 1024 * 1024,
        LINGUAVOX_ENABLE_CORS=False,
        LINGUAVOX_CORS_ORIGIN="*",
    )
    if config:
        app.config.update(config)

    app.register_blueprint(API)

    @app.after_request
    def apply_cors_headers(response: Response) -> Response:
        if app.config.get("LINGUAVOX_ENABLE_CORS"):
            response.headers.setdefault("Access-Control-Allow-Origin", app.config["LINGUAVOX_CORS_ORIGIN"])
            response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
            response.headers.setdefault("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
        return response

    @app.errorhandler(LinguavoxError)
    def handle_linguavox_error(exc: LinguavoxError):
        status = status_for(exc)
        if status >= 500:
            LOGGER.error("Request failed (%s): %s", exc.code, exc)
        return jsonify(exc.to_payload()), status

    @app.errorhandler(RequestEntityTooLarge)
    def handle_oversized_body(exc: RequestEntityTooLarge):
        limit = app.config["MAX_CONTENT_LENGTH"]
        LOGGER.warning("Rejected request body over %d bytes", limit)
        error = PayloadTooLarge("Audio file too large. Maximum 25MB allowed.", details={"maxBytes": limit})
        return jsonify(error.to_payload()), status_for(error)

    with app.app_context():
        current_app.config["LINGUAVOX_SETTINGS"] = load_settings()
        LOGGER.info("Loaded settings for web API")

    return app


@API.get("/health")
def health() -> Response:
    return jsonify({"ok": True})


@API.get("/languages")
def languages() -> Response:
    return jsonify(
        {
            "stt": [{"code": code, "name": name} for code, name in STT_LANGUAGE_NAMES.items()],
            "tts": {
                code: [voice.to_mapping() for voice in voices]
                for code, voices in LANGUAGE_VOICES.items()
            },
            "translation": [{"code": code, "name": name} for code, name in TRANSLATION_LANGUAGES.items()],
        }
    )


@API.get("/settings")
def api_get_settings() -> Response:
    return jsonify(current_settings().to_mapping())


@API.post("/settings")
def api_update_settings() -> Response:
    payload = request.get_json(silent=True) or {}
    merged = current_settings().to_mapping()
    merged.update({key: value for key, value in payload.items() if key in merged})
    updated = Settings.from_mapping(merged)
    save_settings(updated)
    current_app.config["LINGUAVOX_SETTINGS"] = updated
    return jsonify(updated.to_mapping())


@API.post("/stt")
async def api_stt():
    audio_file = request.files.get("audio")
    source_lang = (request.form.get("sourceLang") or "").strip()
    if audio_file is None or not source_lang:
        return json_error("Missing audio file or language", 400)

    data = audio_file.read()
    if len(data) > MAX_AUDIO_BYTES:
        raise PayloadTooLarge("Audio file too large. Maximum 25MB allowed.")

    payload = AudioPayload(
        data=data,
        mime_type=_normalize_mime_type(audio_file.mimetype) or "audio/wav",
        language=source_lang,
    )
    result = await transcribe(payload, source_lang)
    return jsonify(result.to_mapping())


@API.post("/tts")
async def api_tts():
    payload = request.get_json(silent=True) or {}
    text = str(payload.get("text") or "")
    source_lang = str(payload.get("sourceLang") or "")
    if not text or not source_lang:
        return json_error("Missing text or language", 400)

    synthesis = SynthesisRequest(
        text=text,
        voice=source_lang,
        volume=_parse_float(payload.get("volume"), 1.0),
        rate=_parse_float(payload.get("rate"), 1.0),
    )
    result = await synthesize(synthesis, settings=current_settings())
    return jsonify({"audioBase64": result.data_uri, "message": "Speech generated successfully"})


@API.post("/translate")
async def api_translate():
    payload = request.get_json(silent=True) or {}
    settings = current_settings()
    text = str(payload.get("text") or "")
    source_lang = str(payload.get("sourceLang") or settings.default_source_language)
    target_lang = str(payload.get("targetLang") or settings.default_target_language)

    translated, provider = await translate_with_provider(
        text, source_lang, target_lang, default_providers(settings)
    )
    return jsonify({"translatedText": translated, "provider": provider})


def current_settings() -> Settings:
    settings = current_app.config.get("LINGUAVOX_SETTINGS")
    if isinstance(settings, Settings):
        return settings
    settings = load_settings()
    current_app.config["LINGUAVOX_SETTINGS"] = settings
    return settings


def status_for(exc: LinguavoxError) -> int:
    if isinstance(exc, ProviderRejected):
        # Pass the provider's error status through; envelope errors become 502.
        if exc.status is not None and 400 <= exc.status < 600:
            return exc.status
        return 502
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return 500


def json_error(message: str, status: int, details: Any = None):
    return jsonify({"error": message, "details": details if details is not None else message}), status


def _normalize_mime_type(value: Any) -> str:
    mimetype = str(value or "").strip().lower()
    if ";" in mimetype:
        mimetype = mimetype.split(";", 1)[0].strip()
    return mimetype


def _parse_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Expected a number, got {value!r}") from None


if __name__ == "__main__":  # pragma: no cover - manual execution
    logging.basicConfig(level=logging.INFO)
    app = create_app({"ENV": "production"})
    app.run(host="0.0.0.0", port=8080)
