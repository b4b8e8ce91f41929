"""Client for the upstream OpenAI-compatible LLM gateway."""
from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import AsyncIterator, Dict, List, Optional

import httpx
from fastapi import Request
from openai import APIError, APIStatusError, AsyncOpenAI

from bloom_host.core.config import Settings
from bloom_host.core.exceptions import (
    ConfigurationError,
    RelayError,
    UpstreamError,
    UpstreamQuotaExceededError,
    UpstreamRateLimitedError,
)

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]


class GatewayClient:
    """Thin wrapper over `AsyncOpenAI` that maps gateway failures onto relay errors."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.model = model
        self._client: Optional[AsyncOpenAI] = None
        if api_key:
            # Retrying is left to the user; a 429 must reach them as-is.
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                max_retries=0,
                http_client=http_client,
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayClient":
        return cls(
            api_key=settings.LLM_API_KEY,
            base_url=settings.LLM_GATEWAY_URL,
            model=settings.LLM_MODEL,
        )

    async def complete(self, messages: Messages) -> str:
        """Run a non-streaming completion and return the raw assistant text."""
        client = self._require_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except APIError as exc:
            raise self._translate(exc) from exc

        content = response.choices[0].message.content if response.choices else None
        return content or ""

    async def stream(self, messages: Messages) -> AsyncIterator[bytes]:
        """
        Open a streaming completion and return an iterator over the raw SSE body.

        The request is sent before this coroutine returns, so gateway errors
        (429, 402, ...) surface here rather than halfway through the relay.
        """
        client = self._require_client()
        stack = AsyncExitStack()
        try:
            response = await stack.enter_async_context(
                client.chat.completions.with_streaming_response.create(
                    model=self.model,
                    messages=messages,
                    stream=True,
                )
            )
        except APIError as exc:
            await stack.aclose()
            raise self._translate(exc) from exc

        async def body() -> AsyncIterator[bytes]:
            try:
                async for chunk in response.iter_bytes():
                    yield chunk
            finally:
                await stack.aclose()

        return body()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    def _require_client(self) -> AsyncOpenAI:
        if self._client is None:
            raise ConfigurationError("LLM_API_KEY is not configured")
        return self._client

    @staticmethod
    def _translate(exc: APIError) -> RelayError:
        if isinstance(exc, APIStatusError):
            body = exc.response.text if exc.response is not None else ""
            logger.error(f"AI gateway error: {exc.status_code} {body[:500]}")
            if exc.status_code == 429:
                return UpstreamRateLimitedError()
            if exc.status_code == 402:
                return UpstreamQuotaExceededError()
        else:
            logger.error(f"AI gateway request failed: {exc}")
        return UpstreamError()


def get_gateway(request: Request) -> GatewayClient:
    """FastAPI dependency returning the gateway client created at startup."""
    return request.app.state.gateway
