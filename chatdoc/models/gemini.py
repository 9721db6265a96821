"""Gemini streamGenerateContent over SSE. See https://ai.google.dev/api/generate-content."""

from __future__ import annotations

import json
import logging
from typing import AsyncIterator

import httpx

from chatdoc.core.errors import TransportError
from chatdoc.core.logging_config import redact_url
from chatdoc.models.payload import GenerateRequest

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def stream_url(base_url: str, model: str) -> str:
    root = (base_url or DEFAULT_BASE_URL).rstrip("/")
    return f"{root}/models/{model}:streamGenerateContent"


def _error_message(body: bytes) -> str:
    """Best-effort message from an error response body."""
    text = body.decode("utf-8", errors="replace").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text[:200]
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or "")
    return text[:200]


class GeminiClient:
    """Streaming client. One HTTP connection per request; no read timeout."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._base_url = base_url
        self._timeout = httpx.Timeout(None, connect=connect_timeout)
        self._transport = transport

    @property
    def url(self) -> str:
        return stream_url(self._base_url, self.model)

    def stream_lines(self, request: GenerateRequest) -> AsyncIterator[str]:
        """Yield response lines as they arrive. Raises TransportError on HTTP or
        connection failure."""

        async def _stream() -> AsyncIterator[str]:
            headers = {
                "Content-Type": "application/json",
                "Accept": "text/event-stream",
            }
            params = {"alt": "sse", "key": self._api_key}
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    async with client.stream(
                        "POST",
                        self.url,
                        params=params,
                        content=request.to_json(),
                        headers=headers,
                    ) as resp:
                        if resp.status_code >= 400:
                            body = await resp.aread()
                            raise TransportError(resp.status_code, _error_message(body))
                        logger.debug("stream opened", extra={"model": self.model})
                        async for line in resp.aiter_lines():
                            yield line
            except httpx.HTTPError as e:
                raise TransportError(None, redact_url(str(e)) or type(e).__name__) from e

        return _stream()
