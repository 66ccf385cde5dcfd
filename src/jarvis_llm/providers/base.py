"""Provider-agnostic base interfaces and helpers."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing
from typing import Any, cast

import httpx

from jarvis_llm.catalog import ProviderInfo, get_provider_info
from jarvis_llm.errors import (
    ConfigurationError,
    JarvisLLMError,
    ProviderError,
    ProviderTimeoutError,
)
from jarvis_llm.streaming import StreamStats
from jarvis_llm.types import (
    ChatCompletion,
    ConnectionCheck,
    InvokeOptions,
    Message,
    ProviderConfig,
    ProviderName,
    StreamChunk,
)

_PROBE_TIMEOUT_S = 10.0


class BaseProvider(ABC):
    """Shared request/response plumbing for one chat-completion API.

    Subclasses describe the wire format (endpoint, headers, payload, response
    normalization, streaming demultiplexer); this class owns the HTTP calls,
    timeouts and error mapping.
    """

    name: ProviderName
    _logger = logging.getLogger(__name__)

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def info(self) -> ProviderInfo:
        return get_provider_info(self.name)

    def resolve_model(self, config: ProviderConfig) -> str:
        """Return the configured model, or the provider default for unset/"default"."""
        if not config.model or config.model == "default":
            return self.info.default_model
        return config.model

    def base_url(self, config: ProviderConfig) -> str:
        return (config.api_url or self.info.default_url).rstrip("/")

    @abstractmethod
    def endpoint(self, config: ProviderConfig) -> str:
        """Absolute URL of the chat endpoint."""
        raise NotImplementedError

    @abstractmethod
    def headers(self, config: ProviderConfig) -> dict[str, str]:
        """Request headers; raises ConfigurationError when credentials are missing."""
        raise NotImplementedError

    @abstractmethod
    def build_payload(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def normalize(self, data: dict[str, Any], model: str) -> ChatCompletion:
        raise NotImplementedError

    @abstractmethod
    def iter_chunks(
        self, byte_stream: AsyncIterable[bytes], stats: StreamStats
    ) -> AsyncIterator[StreamChunk]:
        """Demultiplex the provider's streaming body."""
        raise NotImplementedError

    @abstractmethod
    async def _check(self, config: ProviderConfig) -> None:
        """Probe the provider; raise a JarvisLLMError when it is unusable."""
        raise NotImplementedError

    async def chat(
        self,
        config: ProviderConfig,
        messages: list[Message],
        options: InvokeOptions | None = None,
    ) -> ChatCompletion:
        """Run a non-streaming completion and normalize the result."""
        model = self.resolve_model(config)
        headers = self.headers(config)
        payload = self._payload_for(config, messages, model, options, stream=False)

        try:
            async with asyncio.timeout(config.timeout_s):
                response = await self._client.post(
                    self.endpoint(config),
                    headers=headers,
                    json=payload,
                    timeout=config.timeout_s,
                )
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise ProviderTimeoutError(
                self.name, f"request timed out after {config.timeout_ms} ms"
            ) from exc
        except httpx.InvalidURL as exc:
            raise ConfigurationError(self.name, f"invalid API URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, str(exc) or type(exc).__name__) from exc

        data = self._json_or_error(response)
        return self.normalize(data, model)

    async def stream(
        self,
        config: ProviderConfig,
        messages: list[Message],
        stats: StreamStats | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Yield canonical chunks from a streaming completion.

        ``timeout_ms`` applies to each network read, not to the whole stream.
        """
        stats = stats if stats is not None else StreamStats()
        model = self.resolve_model(config)
        headers = self.headers(config)
        payload = self._payload_for(config, messages, model, None, stream=True)

        try:
            async with self._client.stream(
                "POST",
                self.endpoint(config),
                headers=headers,
                json=payload,
                timeout=config.timeout_s,
            ) as response:
                if response.status_code >= 400:
                    body = await response.aread()
                    raise ProviderError(
                        self.name,
                        body.decode(errors="replace") or response.reason_phrase,
                        status_code=response.status_code,
                    )

                async with aclosing(self.iter_chunks(response.aiter_bytes(), stats)) as chunks:
                    async for chunk in chunks:
                        yield chunk
                        if chunk.is_terminal:
                            break
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                self.name, f"stream read timed out after {config.timeout_ms} ms"
            ) from exc
        except httpx.InvalidURL as exc:
            raise ConfigurationError(self.name, f"invalid API URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, str(exc) or type(exc).__name__) from exc
        finally:
            if stats.skipped_lines:
                self._logger.debug(
                    "%s stream skipped %d malformed line(s)", self.name, stats.skipped_lines
                )

    async def check_connection(self, config: ProviderConfig) -> ConnectionCheck:
        """Probe the provider without raising; failures are reported in the result."""
        started = time.perf_counter()
        try:
            await self._check(config)
        except JarvisLLMError as exc:
            return ConnectionCheck(success=False, latency_ms=_elapsed_ms(started), error=str(exc))
        return ConnectionCheck(success=True, latency_ms=_elapsed_ms(started))

    async def _probe(self, url: str, headers: dict[str, str] | None = None) -> None:
        try:
            response = await self._client.get(url, headers=headers, timeout=_PROBE_TIMEOUT_S)
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(self.name, "connection check timed out") from exc
        except httpx.InvalidURL as exc:
            raise ConfigurationError(self.name, f"invalid API URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, str(exc) or type(exc).__name__) from exc
        if response.status_code >= 400:
            raise ProviderError(self.name, response.reason_phrase, status_code=response.status_code)

    def _payload_for(
        self,
        config: ProviderConfig,
        messages: list[Message],
        model: str,
        options: InvokeOptions | None,
        *,
        stream: bool,
    ) -> dict[str, Any]:
        temperature = config.temperature
        max_tokens = config.max_tokens
        if options is not None:
            if options.temperature is not None:
                temperature = options.temperature
            if options.max_tokens is not None:
                max_tokens = options.max_tokens
        return self.build_payload(
            messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=stream,
        )

    def _json_or_error(self, response: httpx.Response) -> dict[str, Any]:
        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                response.text or response.reason_phrase,
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(self.name, "Response body is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, "Response body is not a JSON object")
        return cast(dict[str, Any], data)


def openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Serialize messages for OpenAI-compatible chat endpoints."""
    return [{"role": m.role, "content": m.wire_content()} for m in messages]
