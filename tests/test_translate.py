from __future__ import annotations

import asyncio
import types

import httpx
import pytest

from linguavox_core.config import Settings
from linguavox_core.errors import (
    AllProvidersExhausted,
    ClientError,
    InvalidRequest,
    ProviderRejected,
    ProviderUnreachable,
)
from linguavox_core.services.translate import (
    MyMemoryProvider,
    OpenAIChatProvider,
    TranslationProvider,
    default_providers,
    translate,
    translate_with_provider,
)


class ScriptedProvider(TranslationProvider):
    def __init__(self, name: str, log: list, result: str | None = None, error: Exception | None = None) -> None:
        self.name = name
        self.log = log
        self.result = result
        self.error = error

    async def invoke(self, text: str, source: str, target: str) -> str:
        self.log.append((self.name, text, source, target))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.result


def test_falls_back_to_next_provider_in_order():
    log: list = []
    providers = [
        ScriptedProvider("A", log, error=ProviderUnreachable("down", provider="A")),
        ScriptedProvider("B", log, result="hola"),
    ]

    assert asyncio.run(translate("hello", "en", "es", providers)) == "hola"
    assert [entry[0] for entry in log] == ["A", "B"]
    assert log[1] == ("B", "hello", "en", "es")


def test_first_success_stops_the_chain():
    log: list = []
    providers = [
        ScriptedProvider("A", log, result="bonjour"),
        ScriptedProvider("B", log, result="salut"),
    ]

    assert asyncio.run(translate("hello", "en", "fr", providers)) == "bonjour"
    assert [entry[0] for entry in log] == ["A"]


def test_all_failures_exhaust_every_provider_once():
    log: list = []
    providers = [
        ScriptedProvider("A", log, error=ProviderRejected("quota", provider="A", status=429)),
        ScriptedProvider("B", log, error=ValueError("broken parser")),
        ScriptedProvider("C", log, error=ProviderUnreachable("timeout", provider="C")),
    ]

    with pytest.raises(AllProvidersExhausted) as excinfo:
        asyncio.run(translate("hello", "en", "de", providers))

    assert [entry[0] for entry in log] == ["A", "B", "C"]
    assert [name for name, _ in excinfo.value.failures] == ["A", "B", "C"]
    assert isinstance(excinfo.value.failures[1][1], ValueError)


@pytest.mark.parametrize("code", ["en", "es", "zh", "unknown"])
def test_same_language_is_invalid_without_calls(code):
    log: list = []
    with pytest.raises(InvalidRequest):
        asyncio.run(translate("hello", code, code, [ScriptedProvider("A", log, result="x")]))
    assert log == []


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_text_is_invalid_without_calls(text):
    log: list = []
    with pytest.raises(InvalidRequest):
        asyncio.run(translate(text, "en", "es", [ScriptedProvider("A", log, result="x")]))
    assert log == []


def test_empty_provider_list_is_invalid():
    with pytest.raises(InvalidRequest):
        asyncio.run(translate("hello", "en", "es", []))


def test_provider_list_is_not_mutated_and_concurrent_requests_are_independent():
    log: list = []
    providers = [
        ScriptedProvider("A", log, error=ProviderUnreachable("down", provider="A")),
        ScriptedProvider("B", log, result="ok"),
    ]
    snapshot = list(providers)

    async def both():
        return await asyncio.gather(
            translate("one", "en", "es", providers),
            translate("two", "en", "fr", providers),
        )

    assert asyncio.run(both()) == ["ok", "ok"]
    assert providers == snapshot
    assert sorted(entry[:2] for entry in log) == [("A", "one"), ("A", "two"), ("B", "one"), ("B", "two")]


def run_mymemory(handler, text="hello", source="en", target="zh", email=None):
    requests: list[httpx.Request] = []

    def recording_handler(request):
        requests.append(request)
        return handler(request)

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(recording_handler)) as client:
            return await MyMemoryProvider(client, email=email).invoke(text, source, target)

    return asyncio.run(go()), requests


def test_mymemory_reads_translated_text():
    envelope = {"responseData": {"translatedText": "你好"}, "responseStatus": 200}
    result, requests = run_mymemory(lambda request: httpx.Response(200, json=envelope), email="me@example.com")

    assert result == "你好"
    url = requests[0].url
    assert url.host == "api.mymemory.translated.net"
    assert url.params["q"] == "hello"
    assert url.params["langpair"] == "en|zh-CN"
    assert url.params["de"] == "me@example.com"


def test_mymemory_envelope_error_is_rejected():
    envelope = {
        "responseData": {"translatedText": "INVALID LANGUAGE PAIR"},
        "responseStatus": "403",
        "responseDetails": "INVALID LANGUAGE PAIR SPECIFIED",
    }
    with pytest.raises(ProviderRejected) as excinfo:
        run_mymemory(lambda request: httpx.Response(200, json=envelope))
    assert excinfo.value.status == 403
    assert excinfo.value.body == "INVALID LANGUAGE PAIR SPECIFIED"


def test_mymemory_http_error_is_rejected():
    with pytest.raises(ProviderRejected) as excinfo:
        run_mymemory(lambda request: httpx.Response(503, text="maintenance"))
    assert excinfo.value.status == 503


@pytest.mark.parametrize("body", [b"<html>oops</html>", b"[]", b'{"responseData": {}}'])
def test_mymemory_malformed_payload_is_rejected(body):
    with pytest.raises(ProviderRejected):
        run_mymemory(lambda request: httpx.Response(200, content=body))


def test_mymemory_network_failure_is_unreachable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ProviderUnreachable):
        run_mymemory(handler)


class DummyChatResponse:
    def __init__(self, content: str | None) -> None:
        message = types.SimpleNamespace(content=content)
        self.choices = [types.SimpleNamespace(message=message, index=0)]


def fake_chat_client(content: str | None, calls: list):
    async def create(**kwargs):
        calls.append(kwargs)
        return DummyChatResponse(content)

    return types.SimpleNamespace(chat=types.SimpleNamespace(completions=types.SimpleNamespace(create=create)))


def test_openai_provider_prompts_with_language_names():
    calls: list = []
    provider = OpenAIChatProvider(client_factory=lambda: fake_chat_client("hola\n\n\nmundo", calls))

    assert asyncio.run(provider.invoke("hello world", "en", "es")) == "hola\n\nmundo"
    prompt = calls[0]["messages"][0]["content"]
    assert "from English to Spanish" in prompt
    assert prompt.endswith("hello world")


def test_openai_provider_empty_completion_is_rejected():
    provider = OpenAIChatProvider(client_factory=lambda: fake_chat_client("", []))
    with pytest.raises(ProviderRejected):
        asyncio.run(provider.invoke("hello", "en", "es"))


def test_default_providers_follow_settings_order():
    providers = default_providers(Settings(translation_providers=["openai", "bogus", "mymemory"]))
    assert [type(provider) for provider in providers] == [OpenAIChatProvider, MyMemoryProvider]

    assert [provider.name for provider in default_providers()] == ["MyMemory Translate", "OpenAI Chat"]


def test_default_providers_rejects_a_chain_with_no_known_names():
    with pytest.raises(ClientError) as excinfo:
        default_providers(Settings(translation_providers=["bogus", "deepl"]))
    assert excinfo.value.provider == "configuration"


def test_translate_with_provider_names_the_provider_that_answered():
    log: list = []
    providers = [
        ScriptedProvider("A", log, error=ProviderUnreachable("down", provider="A")),
        ScriptedProvider("B", log, result="hola"),
        ScriptedProvider("C", log, result="never"),
    ]

    assert asyncio.run(translate_with_provider("hello", "en", "es", providers)) == ("hola", "B")
    assert [entry[0] for entry in log] == ["A", "B"]
