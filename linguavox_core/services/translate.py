"""Translation providers and the ordered fallback chain that drives them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Final, Sequence

import httpx
import openai

from ..config import Settings
from ..errors import (
    AllProvidersExhausted,
    ClientError,
    InvalidRequest,
    ProviderRejected,
    from_httpx_error,
    from_openai_error,
    malformed_response,
)
from ..registry import mymemory_language, translation_language_name
from ._client import get_openai_client
from .text_utils import format_structured_text

LOGGER = logging.getLogger(__name__)


class TranslationProvider(ABC):
    """One external translation service.

    ``invoke`` returns the translated text or raises a
    :class:`~linguavox_core.errors.ProviderError`.
    """

    name: str = "provider"

    @abstractmethod
    async def invoke(self, text: str, source: str, target: str) -> str: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class MyMemoryProvider(TranslationProvider):
    name = "MyMemory Translate"
    URL: Final[str] = "https://api.mymemory.translated.net/get"

    def __init__(self, client: httpx.AsyncClient | None = None, email: str | None = None) -> None:
        self._client = client
        self._email = email

    async def invoke(self, text: str, source: str, target: str) -> str:
        params = {
            "q": text,
            "langpair": f"{mymemory_language(source)}|{mymemory_language(target)}",
        }
        if self._email:
            params["de"] = self._email
        try:
            if self._client is None:
                async with httpx.AsyncClient() as client:
                    response = await self._get(client, params)
            else:
                response = await self._get(self._client, params)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise from_httpx_error(self.name, exc) from exc
        return self._parse(response)

    async def _get(self, client: httpx.AsyncClient, params: dict[str, str]) -> httpx.Response:
        response = await client.get(self.URL, params=params)
        response.raise_for_status()
        return response

    def _parse(self, response: httpx.Response) -> str:
        try:
            envelope: Any = response.json()
        except ValueError:
            raise malformed_response(self.name, response.status_code, response.text) from None
        if not isinstance(envelope, dict):
            raise malformed_response(self.name, response.status_code, envelope)

        # MyMemory reports quota and language-pair errors inside a 200 envelope.
        status = envelope.get("responseStatus", 200)
        try:
            status = int(status)
        except (TypeError, ValueError):
            status = None
        if status != 200:
            details = envelope.get("responseDetails") or envelope
            raise ProviderRejected(
                f"{self.name} rejected the request: {details}",
                provider=self.name,
                status=status,
                body=details,
            )

        data = envelope.get("responseData")
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str) or not translated:
            raise malformed_response(self.name, response.status_code, envelope)
        return translated


class OpenAIChatProvider(TranslationProvider):
    """Prompt-based translation through the OpenAI chat endpoint."""

    name = "OpenAI Chat"
    MODEL: Final[str] = "gpt-4o-mini"
    PROMPT_TEMPLATE: Final[str] = (
        "Translate the following text from {source} to {target}. "
        "Keep the paragraph structure. "
        "Return only the translated text.\n\n{text}"
    )

    def __init__(self, client_factory: Callable[[], Any] = get_openai_client, model: str | None = None) -> None:
        self._client_factory = client_factory
        self._model = model or self.MODEL

    async def invoke(self, text: str, source: str, target: str) -> str:
        prompt = self.PROMPT_TEMPLATE.format(
            source=translation_language_name(source),
            target=translation_language_name(target),
            text=text,
        )
        client = self._client_factory()
        try:
            response = await client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.OpenAIError as exc:
            raise from_openai_error(self.name, exc) from exc

        choices = getattr(response, "choices", None) or []
        content = getattr(choices[0].message, "content", None) if choices else None
        if not content:
            raise malformed_response(self.name, None, "empty completion")
        return format_structured_text(content)


PROVIDER_FACTORIES: Final[dict[str, Callable[[Settings], TranslationProvider]]] = {
    "mymemory": lambda settings: MyMemoryProvider(email=settings.mymemory_email),
    "openai": lambda settings: OpenAIChatProvider(),
}


def default_providers(settings: Settings | None = None) -> list[TranslationProvider]:
    """Build the configured provider chain, in priority order."""

    settings = (settings or Settings()).with_environment()
    providers: list[TranslationProvider] = []
    for name in settings.translation_providers:
        factory = PROVIDER_FACTORIES.get(name)
        if factory is None:
            LOGGER.warning("Skipping unknown translation provider %r", name)
            continue
        providers.append(factory(settings))
    if not providers:
        LOGGER.error("No usable translation providers in %r", settings.translation_providers)
        raise ClientError(
            f"No usable translation providers configured: {settings.translation_providers}",
            provider="configuration",
        )
    return providers


async def translate_with_provider(
    text: str,
    source_lang: str,
    target_lang: str,
    providers: Sequence[TranslationProvider],
) -> tuple[str, str]:
    """Translate *text*, trying each provider once, in order, until one succeeds.

    Returns the translated text and the name of the provider that produced it.
    """

    if not text or not text.strip():
        raise InvalidRequest("Please enter text to translate")
    if source_lang == target_lang:
        raise InvalidRequest("Source and target languages must be different")

    chain = tuple(providers)
    if not chain:
        raise InvalidRequest("No translation providers configured")

    LOGGER.info("Translating %d chars %s -> %s", len(text), source_lang, target_lang)
    failures: list[tuple[str, BaseException]] = []
    for index, provider in enumerate(chain):
        try:
            result = await provider.invoke(text, source_lang, target_lang)
        except Exception as exc:
            LOGGER.warning("%s failed (attempt %d/%d): %s", provider.name, index + 1, len(chain), exc)
            failures.append((provider.name, exc))
            continue
        LOGGER.debug("Translation completed by %s", provider.name)
        return result, provider.name

    raise AllProvidersExhausted(failures)


async def translate(
    text: str,
    source_lang: str,
    target_lang: str,
    providers: Sequence[TranslationProvider],
) -> str:
    """Translate *text* through the ordered *providers* chain."""

    result, _ = await translate_with_provider(text, source_lang, target_lang, providers)
    return result


__all__ = [
    "TranslationProvider",
    "MyMemoryProvider",
    "OpenAIChatProvider",
    "PROVIDER_FACTORIES",
    "default_providers",
    "translate",
    "translate_with_provider",
]
