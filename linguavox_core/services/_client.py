"""Shared helpers for acquiring API clients and credentials."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from openai import AsyncOpenAI

from ..errors import ClientError

LOGGER = logging.getLogger(__name__)


def require_env(name: str, provider: str) -> str:
    """Return the credential stored in *name*, loading ``.env`` first."""

    load_dotenv()
    value = os.getenv(name)
    if not value:
        raise ClientError(f"{name} is not configured", provider=provider)
    return value


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """Return a cached async OpenAI client configured via environment variables.

    Automatic retries are disabled: every call is a single attempt and retry
    policy belongs to the caller.
    """

    api_key = require_env("OPENAI_API_KEY", "openai")
    LOGGER.debug("Initialising OpenAI client")
    return AsyncOpenAI(api_key=api_key, max_retries=0)


__all__ = ["get_openai_client", "require_env"]
