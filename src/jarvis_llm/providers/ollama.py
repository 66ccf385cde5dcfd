"""Ollama provider implementation."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from jarvis_llm.normalize import normalize_ollama
from jarvis_llm.providers.base import BaseProvider, openai_messages
from jarvis_llm.streaming import StreamStats, iter_ndjson_chunks
from jarvis_llm.types import ChatCompletion, Message, ProviderConfig, StreamChunk

_CHAT_PATH = "/api/chat"
_TAGS_PATH = "/api/tags"


class OllamaProvider(BaseProvider):
    """Local Ollama server: /api/chat with NDJSON streaming, no auth."""

    name = "ollama"

    def endpoint(self, config: ProviderConfig) -> str:
        return f"{self.base_url(config)}{_CHAT_PATH}"

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def build_payload(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "messages": openai_messages(messages),
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
            "stream": stream,
        }

    def normalize(self, data: dict[str, Any], model: str) -> ChatCompletion:
        return normalize_ollama(data, model)

    def iter_chunks(
        self, byte_stream: AsyncIterable[bytes], stats: StreamStats
    ) -> AsyncIterator[StreamChunk]:
        return iter_ndjson_chunks(byte_stream, stats)

    async def _check(self, config: ProviderConfig) -> None:
        await self._probe(f"{self.base_url(config)}{_TAGS_PATH}")
