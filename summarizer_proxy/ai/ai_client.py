"""Thin wrapper around the OpenAI SDK used by the proxy routes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from openai import APIStatusError, AsyncOpenAI

from summarizer_proxy.config import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

SUMMARY_MAX_TOKENS = 700
SUMMARY_TEMPERATURE = 0.2
SLIDES_MAX_TOKENS = 700
SLIDES_TEMPERATURE = 0.7
IMAGE_SIZE = "512x512"


class UpstreamError(Exception):
    """Raised when the upstream API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Upstream returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class AIClient:
    """Issues exactly one upstream request per call and returns the raw JSON.

    Retries are disabled on the SDK client. Pass ``http_client`` to reuse a
    transport (tests hand in an ``httpx.AsyncClient`` over a mock transport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=0,
            http_client=http_client,
        )

    async def summarize(self, messages: List[Dict[str, str]], model: str) -> Dict[str, Any]:
        return await self._call(
            self._client.chat.completions.with_raw_response.create,
            model=model,
            messages=messages,
            max_tokens=SUMMARY_MAX_TOKENS,
            temperature=SUMMARY_TEMPERATURE,
            n=1,
        )

    async def generate_slides(self, messages: List[Dict[str, str]], model: str) -> Dict[str, Any]:
        return await self._call(
            self._client.chat.completions.with_raw_response.create,
            model=model,
            messages=messages,
            temperature=SLIDES_TEMPERATURE,
            max_tokens=SLIDES_MAX_TOKENS,
        )

    async def generate_image(self, prompt: str) -> Dict[str, Any]:
        return await self._call(
            self._client.images.with_raw_response.generate,
            prompt=prompt,
            n=1,
            size=IMAGE_SIZE,
        )

    async def aclose(self) -> None:
        await self._client.close()

    async def _call(self, method, **params) -> Dict[str, Any]:
        try:
            raw = await method(**params)
        except APIStatusError as exc:
            raise UpstreamError(exc.status_code, exc.response.text) from exc
        return raw.http_response.json()


def extract_summary(data: Any) -> str:
    """Pull the summary text out of a chat-completion payload.

    Prefers ``choices[0].message.content``, then the legacy completion
    ``choices[0].text``, then the empty string. The result is trimmed.
    """

    choices = data.get("choices") if isinstance(data, dict) else None
    first = choices[0] if isinstance(choices, list) and choices else {}
    if not isinstance(first, dict):
        return ""

    message = first.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if content is None:
        content = first.get("text")
    if content is None:
        return ""
    return str(content).strip()
