"""Whitespace clean-up for text coming back from providers."""

from __future__ import annotations

import re

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_RUNS_OF_SPACE = re.compile(r"\s+")


def format_structured_text(text: str | None) -> str:
    """Collapse whitespace inside paragraphs and keep one blank line between them."""

    if not text or not text.strip():
        return ""
    paragraphs = (
        _RUNS_OF_SPACE.sub(" ", block).strip()
        for block in _PARAGRAPH_BREAK.split(text.strip())
    )
    return "\n\n".join(paragraph for paragraph in paragraphs if paragraph)


__all__ = ["format_structured_text"]
