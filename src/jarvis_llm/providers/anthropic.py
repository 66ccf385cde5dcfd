"""Anthropic provider implementation."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import httpx

from jarvis_llm.errors import ConfigurationError
from jarvis_llm.normalize import normalize_anthropic
from jarvis_llm.providers.base import BaseProvider
from jarvis_llm.streaming import StreamStats, iter_anthropic_chunks
from jarvis_llm.types import ChatCompletion, Message, ProviderConfig, StreamChunk

_MESSAGES_PATH = "/v1/messages"
_API_VERSION = "2023-06-01"
_KEY_PREFIX = "sk-ant-"


class AnthropicProvider(BaseProvider):
    """Anthropic Messages API at a fixed host, keyed per user."""

    name = "anthropic"

    def __init__(self, client: httpx.AsyncClient, *, base_url: str | None = None) -> None:
        super().__init__(client)
        self._base_url = (base_url or self.info.default_url).rstrip("/")

    def base_url(self, config: ProviderConfig) -> str:
        return self._base_url

    def endpoint(self, config: ProviderConfig) -> str:
        return f"{self._base_url}{_MESSAGES_PATH}"

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        if not config.api_key:
            raise ConfigurationError(self.name, "Anthropic API key not configured")
        return {
            "x-api-key": config.api_key,
            "anthropic-version": _API_VERSION,
            "content-type": "application/json",
        }

    def build_payload(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        system_text, rest = self._split_system(messages)

        payload: dict[str, Any] = {
            "model": model,
            "messages": [self._serialize_message(m) for m in rest],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system_text is not None:
            payload["system"] = system_text
        if stream:
            payload["stream"] = True
        return payload

    def normalize(self, data: dict[str, Any], model: str) -> ChatCompletion:
        return normalize_anthropic(data, model)

    def iter_chunks(
        self, byte_stream: AsyncIterable[bytes], stats: StreamStats
    ) -> AsyncIterator[StreamChunk]:
        return iter_anthropic_chunks(byte_stream, stats)

    async def _check(self, config: ProviderConfig) -> None:
        # no cheap endpoint to probe; only the key format is verified
        if not config.api_key:
            raise ConfigurationError(self.name, "Anthropic API key required")
        if not config.api_key.startswith(_KEY_PREFIX):
            raise ConfigurationError(self.name, "Invalid Anthropic API key format")

    @staticmethod
    def _split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
        """Lift the first system message out; later system messages are dropped."""
        system_text: str | None = None
        rest: list[Message] = []
        for m in messages:
            if m.role == "system":
                if system_text is None:
                    system_text = m.wire_content()
            else:
                rest.append(m)
        return system_text, rest

    @staticmethod
    def _serialize_message(message: Message) -> dict[str, Any]:
        role = "assistant" if message.role == "assistant" else "user"
        return {"role": role, "content": message.wire_content()}
