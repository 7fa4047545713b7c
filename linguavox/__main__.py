"""Command line entry point: ``python -m linguavox``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from linguavox_core import (
    Recorder,
    SoundDeviceMicrophone,
    SynthesisRequest,
    default_providers,
    load_settings,
    synthesize,
    translate,
)
from linguavox_core.errors import LinguavoxError
from linguavox_core.playback import play

LOGGER = logging.getLogger("linguavox")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="linguavox", description="Speech and translation tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="run the JSON API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)

    record = commands.add_parser("record", help="record from the microphone and transcribe")
    record.add_argument("--language", help="STT language code, e.g. en-US or es")

    speak = commands.add_parser("speak", help="synthesize text and play it")
    speak.add_argument("text")
    speak.add_argument("--voice", help="TTS language or voice id, e.g. es or es-mx")
    speak.add_argument("--volume", type=float, default=1.0)
    speak.add_argument("--rate", type=float, default=1.0)

    trans = commands.add_parser("translate", help="translate text through the provider chain")
    trans.add_argument("text")
    trans.add_argument("--source")
    trans.add_argument("--target")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    settings = load_settings()

    if args.command == "serve":
        from .web import create_app

        create_app().run(host=args.host, port=args.port)
        return 0

    try:
        if args.command == "record":
            recorder = Recorder(SoundDeviceMicrophone(), default_language=settings.default_stt_language)
            recorder.start(args.language)
            try:
                input("Recording... press Enter to stop. ")
            except (KeyboardInterrupt, EOFError):
                recorder.abort()
                return 130
            result = asyncio.run(recorder.stop())
            print(result.text if result else "(no audio captured)")
        elif args.command == "speak":
            request = SynthesisRequest(
                text=args.text,
                voice=args.voice or settings.default_tts_language,
                volume=args.volume,
                rate=args.rate,
            )
            result = asyncio.run(synthesize(request, settings=settings))
            play(result, request.volume, request.rate)
        elif args.command == "translate":
            source = args.source or settings.default_source_language
            target = args.target or settings.default_target_language
            print(asyncio.run(translate(args.text, source, target, default_providers(settings))))
    except LinguavoxError as exc:
        LOGGER.error("%s: %s", exc.code, exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
