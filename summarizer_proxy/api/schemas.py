"""Request payloads accepted by the proxy routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from summarizer_proxy.ai.prompts import DEFAULT_LENGTH, DEFAULT_STYLE


class RequestValidationError(ValueError):
    """Raised when an inbound payload cannot be proxied."""


@dataclass(frozen=True)
class SummarizeRequest:
    text: str
    length: str = DEFAULT_LENGTH
    style: str = DEFAULT_STYLE
    mode: str = "openai"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], min_text_length: int = 1) -> "SummarizeRequest":
        """Validate ``text`` and take the selectors as given.

        ``length``, ``style`` and ``mode`` are not checked; non-string
        values are interpolated as text.
        """

        text = payload.get("text")
        minimum = max(1, min_text_length)
        if not isinstance(text, str) or len(text.strip()) < minimum:
            if minimum > 1:
                raise RequestValidationError(
                    f"Provide article text (min ~{minimum} chars) in request body."
                )
            raise RequestValidationError("Missing text to summarize")

        return cls(
            text=text,
            length=_string_or(payload.get("length"), DEFAULT_LENGTH),
            style=_string_or(payload.get("style"), DEFAULT_STYLE),
            mode=_string_or(payload.get("mode"), "openai"),
        )


@dataclass(frozen=True)
class SlideRequest:
    text: str
    language: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SlideRequest":
        return cls(
            text=_string_or(payload.get("text"), ""),
            language=_string_or(payload.get("language"), ""),
        )


@dataclass(frozen=True)
class ImageRequest:
    prompt: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ImageRequest":
        return cls(prompt=_string_or(payload.get("prompt"), ""))


def _string_or(value: Any, default: str) -> str:
    """Interpolate any provided value as text; only absent or null takes the default."""

    if value is None:
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)
