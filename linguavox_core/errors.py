"""Error taxonomy shared by every service, plus provider error normalization.

Providers fail in different shapes: ``httpx`` raises status and transport
errors, the OpenAI SDK raises its own hierarchy, and some providers answer
``200 OK`` with an error envelope. The helpers at the bottom of this module
translate those shapes into the :class:`ProviderError` family so callers only
ever deal with one set of exceptions.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import openai


class LinguavoxError(Exception):
    """Base class for every error raised by :mod:`linguavox_core`."""

    code = "linguavox_error"

    def __init__(self, message: str, *, provider: str | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        """Serialize as ``{"error": ..., "details": ...}`` for JSON surfaces."""
        details = self.details if self.details is not None else self.message
        payload: dict[str, Any] = {"error": self.message, "code": self.code, "details": details}
        if self.provider:
            payload["provider"] = self.provider
        return payload


class DeviceError(LinguavoxError):
    """The microphone is missing or access to it was denied."""

    code = "device_error"


class PayloadTooLarge(LinguavoxError):
    code = "payload_too_large"


class InvalidRequest(LinguavoxError):
    code = "invalid_request"


class ProviderError(LinguavoxError):
    """A call to an external provider failed."""

    code = "provider_error"

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message, provider=provider, details=body)
        self.status = status
        self.body = body


class ProviderRejected(ProviderError):
    """The provider answered with a non-success status or an error envelope."""

    code = "provider_rejected"


class ProviderUnreachable(ProviderError):
    """The request went out but no response came back."""

    code = "provider_unreachable"


class ClientError(ProviderError):
    """The request could not be built or sent."""

    code = "client_error"


class AllProvidersExhausted(LinguavoxError):
    code = "all_providers_exhausted"

    def __init__(self, failures: Sequence[tuple[str, BaseException]]) -> None:
        self.failures = list(failures)
        names = ", ".join(name for name, _ in self.failures) or "none"
        super().__init__(
            f"All translation services failed (tried: {names})",
            details=[{"provider": name, "error": str(exc)} for name, exc in self.failures],
        )


class TranscriptionError(LinguavoxError):
    code = "transcription_failed"


class TranscriptionBusy(LinguavoxError):
    """A finalized recording arrived while another transcription was in flight."""

    code = "transcription_busy"


class SynthesisError(LinguavoxError):
    code = "synthesis_failed"


def from_httpx_error(provider: str, exc: Exception) -> ProviderError:
    """Map an ``httpx`` failure onto the provider error taxonomy."""

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return ProviderRejected(
            f"{provider} responded with HTTP {response.status_code}",
            provider=provider,
            status=response.status_code,
            body=_response_body(response),
        )
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return ProviderUnreachable(f"No response from {provider}: {exc}", provider=provider)
    if isinstance(exc, (httpx.RequestError, httpx.InvalidURL)):
        return ClientError(f"Could not send request to {provider}: {exc}", provider=provider)
    return ClientError(f"Unexpected failure calling {provider}: {exc}", provider=provider)


def from_openai_error(provider: str, exc: Exception) -> ProviderError:
    """Map an OpenAI SDK failure onto the provider error taxonomy."""

    if isinstance(exc, openai.APIStatusError):
        return ProviderRejected(
            exc.message or f"{provider} responded with HTTP {exc.status_code}",
            provider=provider,
            status=exc.status_code,
            body=exc.body,
        )
    # APITimeoutError is a subclass of APIConnectionError.
    if isinstance(exc, openai.APIConnectionError):
        return ProviderUnreachable(f"No response from {provider}: {exc}", provider=provider)
    return ClientError(f"Could not call {provider}: {exc}", provider=provider)


def malformed_response(provider: str, status: int | None, body: Any) -> ProviderRejected:
    return ProviderRejected(
        f"{provider} returned a malformed response",
        provider=provider,
        status=status,
        body=body,
    )


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


__all__ = [
    "LinguavoxError",
    "DeviceError",
    "PayloadTooLarge",
    "InvalidRequest",
    "ProviderError",
    "ProviderRejected",
    "ProviderUnreachable",
    "ClientError",
    "AllProvidersExhausted",
    "TranscriptionError",
    "TranscriptionBusy",
    "SynthesisError",
    "from_httpx_error",
    "from_openai_error",
    "malformed_response",
]
