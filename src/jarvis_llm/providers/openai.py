"""OpenAI provider and the shared OpenAI-compatible wire format."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import httpx

from jarvis_llm.errors import ConfigurationError
from jarvis_llm.normalize import normalize_openai
from jarvis_llm.providers.base import BaseProvider, openai_messages
from jarvis_llm.streaming import StreamStats, iter_sse_chunks
from jarvis_llm.types import ChatCompletion, Message, ProviderConfig, StreamChunk

_CHAT_PATH = "/v1/chat/completions"
_MODELS_PATH = "/v1/models"


class OpenAICompatibleProvider(BaseProvider):
    """Chat Completions request body, response shape and SSE stream."""

    def endpoint(self, config: ProviderConfig) -> str:
        return f"{self.base_url(config)}{_CHAT_PATH}"

    def build_payload(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": openai_messages(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if stream:
            payload["stream"] = True
        return payload

    def normalize(self, data: dict[str, Any], model: str) -> ChatCompletion:
        return normalize_openai(data, self.name, model)

    def iter_chunks(
        self, byte_stream: AsyncIterable[bytes], stats: StreamStats
    ) -> AsyncIterator[StreamChunk]:
        return iter_sse_chunks(byte_stream, stats)


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI Chat Completions at a fixed host, keyed per user."""

    name = "openai"

    def __init__(self, client: httpx.AsyncClient, *, base_url: str | None = None) -> None:
        super().__init__(client)
        self._base_url = (base_url or self.info.default_url).rstrip("/")

    def base_url(self, config: ProviderConfig) -> str:
        # the host is fixed; a user-supplied api_url does not redirect the key
        return self._base_url

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        if not config.api_key:
            raise ConfigurationError(self.name, "OpenAI API key not configured")
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    async def _check(self, config: ProviderConfig) -> None:
        if not config.api_key:
            raise ConfigurationError(self.name, "OpenAI API key required")
        await self._probe(
            f"{self._base_url}{_MODELS_PATH}",
            headers={"Authorization": f"Bearer {config.api_key}"},
        )
