"""FastAPI application exposing the summarize, slide and image proxy routes."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from summarizer_proxy.ai.ai_client import AIClient, UpstreamError, extract_summary
from summarizer_proxy.ai.prompts import slides_messages, summary_messages
from summarizer_proxy.ai.throttle import RequestThrottle
from summarizer_proxy.api.schemas import (
    ImageRequest,
    RequestValidationError,
    SlideRequest,
    SummarizeRequest,
)
from summarizer_proxy.config import PROFILE_SLIDES, PROFILE_SUMMARIZER, Config

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Server not configured with OpenAI key"


class PayloadTooLarge(Exception):
    pass


def create_app(
    config: Config,
    ai_client: Optional[AIClient] = None,
    throttle: Optional[RequestThrottle] = None,
) -> FastAPI:
    """Create the proxy application for ``config.profile``.

    Without an API key no upstream client is built and every proxied route
    answers 500 with a configuration error.
    """

    client = ai_client
    if client is None and config.has_api_key:
        client = AIClient(api_key=config.openai_api_key, base_url=config.openai_base_url)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if client is not None:
            await client.aclose()

    app = FastAPI(
        title="Summarizer Proxy",
        description="Forwards summarize, slide and image requests to the OpenAI API",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.ai_client = client
    app.state.throttle = throttle or RequestThrottle(config.throttle_interval_ms / 1000)

    @app.get("/api/health")
    async def health() -> Dict[str, bool]:
        return {"ok": True}

    if config.profile == PROFILE_SUMMARIZER:
        _register_summarize_route(app, config)
    elif config.profile == PROFILE_SLIDES:
        _register_slides_routes(app, config)

    logger.info("Proxy app created", extra={"profile": config.profile, "api_key_configured": config.has_api_key})
    return app


def _register_summarize_route(app: FastAPI, config: Config) -> None:
    @app.post("/api/summarize")
    async def summarize(request: Request) -> JSONResponse:
        try:
            payload = await _read_json(request, config.max_body_bytes)
            summarize_request = SummarizeRequest.from_payload(payload, config.min_text_length)
        except PayloadTooLarge:
            return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body too large")
        except RequestValidationError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))

        client: Optional[AIClient] = request.app.state.ai_client
        if client is None:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_KEY_MESSAGE)

        try:
            await request.app.state.throttle.wait()
            messages = summary_messages(
                summarize_request.text, summarize_request.length, summarize_request.style
            )
            data = await client.summarize(messages, config.summary_model)
        except UpstreamError as exc:
            logger.error("OpenAI error: %s %s", exc.status_code, exc.body)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "OpenAI API error", detail=exc.body)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Server error while summarizing")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error", detail=str(exc) or repr(exc))

        return JSONResponse({"summary": extract_summary(data)})


def _register_slides_routes(app: FastAPI, config: Config) -> None:
    @app.post("/api/generate-slides")
    async def generate_slides(request: Request) -> JSONResponse:
        client: Optional[AIClient] = request.app.state.ai_client
        try:
            slide_request = SlideRequest.from_payload(await _read_json(request, config.max_body_bytes))
            if client is None:
                return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_KEY_MESSAGE)
            data = await client.generate_slides(
                slides_messages(slide_request.text, slide_request.language), config.slides_model
            )
        except PayloadTooLarge:
            return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body too large")
        except RequestValidationError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except UpstreamError as exc:
            return _relay_upstream_error(exc, "Server error")
        except Exception:  # noqa: BLE001
            logger.exception("Slide generation failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")
        return JSONResponse(data)

    @app.post("/api/generate-image")
    async def generate_image(request: Request) -> JSONResponse:
        client: Optional[AIClient] = request.app.state.ai_client
        try:
            image_request = ImageRequest.from_payload(await _read_json(request, config.max_body_bytes))
            if client is None:
                return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_KEY_MESSAGE)
            data = await client.generate_image(image_request.prompt)
        except PayloadTooLarge:
            return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body too large")
        except RequestValidationError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except UpstreamError as exc:
            return _relay_upstream_error(exc, "Image generation failed")
        except Exception:  # noqa: BLE001
            logger.exception("Image generation failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Image generation failed")
        return JSONResponse(data)


async def _read_json(request: Request, max_bytes: int) -> Dict[str, Any]:
    """Read the body as a JSON object; non-object bodies read as empty."""

    declared = request.headers.get("content-length")
    if max_bytes and declared and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge()

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if max_bytes and received > max_bytes:
            raise PayloadTooLarge()
        chunks.append(chunk)
    body = b"".join(chunks)
    if not body.strip():
        return {}

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RequestValidationError("Request body must be valid JSON") from exc
    return payload if isinstance(payload, dict) else {}


def _relay_upstream_error(exc: UpstreamError, fallback_message: str) -> JSONResponse:
    """Relay an upstream JSON error body as-is with 200; non-JSON bodies become a 500."""

    logger.error("OpenAI error: %s %s", exc.status_code, exc.body)
    try:
        body = json.loads(exc.body)
    except json.JSONDecodeError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, fallback_message)
    return JSONResponse(body)


def _error(status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": message}
    if detail is not None:
        content["detail"] = detail
    return JSONResponse(content, status_code=status_code)
