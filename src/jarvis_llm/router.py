"""Async router dispatching chat requests to providers, with one-hop fallback."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from contextlib import aclosing
from types import TracebackType

import httpx

from jarvis_llm.errors import JarvisLLMError, ProviderTimeoutError, UnsupportedProviderError
from jarvis_llm.providers import BaseProvider, default_providers
from jarvis_llm.settings import Settings, load_settings
from jarvis_llm.types import (
    ChatCompletion,
    ConnectionCheck,
    InvokeOptions,
    Message,
    ProviderConfig,
    StreamChunk,
)

ChunkCallback = Callable[[StreamChunk], Awaitable[None] | None]


class _ChunkSink:
    """Forward chunks to a caller callback, dropping anything after a terminal chunk."""

    def __init__(self, callback: ChunkCallback) -> None:
        self._callback = callback
        self.finished = False

    async def emit(self, chunk: StreamChunk) -> None:
        if self.finished:
            return
        if chunk.is_terminal:
            self.finished = True
        result = self._callback(chunk)
        if inspect.isawaitable(result):
            await result


class LLMRouter:
    """Single entry point for chat completions across all configured providers.

    Each call is routed on ``config.provider``. When the attempt fails with a
    package error and the config allows it, the same call is retried exactly
    once against ``config.fallback_provider``.
    """

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        providers: Iterable[BaseProvider] | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        if providers is None:
            providers = default_providers(self._client, self._settings)
        self._providers: dict[str, BaseProvider] = {p.name: p for p in providers}

    @property
    def settings(self) -> Settings:
        return self._settings

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this router created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> LLMRouter:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def get_provider(self, name: str) -> BaseProvider:
        """Return a provider by its registered name."""
        try:
            return self._providers[name]
        except KeyError as exc:
            raise UnsupportedProviderError(name) from exc

    async def invoke(
        self,
        config: ProviderConfig,
        messages: list[Message],
        options: InvokeOptions | None = None,
    ) -> ChatCompletion:
        """Run a non-streaming completion; errors propagate once fallback is exhausted."""
        try:
            return await self._invoke_once(config, messages, options)
        except JarvisLLMError as exc:
            fallback = config.fallback_config()
            if fallback is None:
                raise
            self._log_fallback(config, fallback, exc)
        return await self._invoke_once(fallback, messages, options)

    async def stream(
        self,
        config: ProviderConfig,
        messages: list[Message],
        on_chunk: ChunkCallback,
    ) -> None:
        """Stream a completion into ``on_chunk``.

        The callback receives content chunks followed by exactly one ``done``
        or ``error`` chunk. Provider failures are reported as an ``error``
        chunk, never raised.
        """
        sink = _ChunkSink(on_chunk)
        try:
            await self._stream_once(config, messages, sink)
            return
        except JarvisLLMError as exc:
            fallback = config.fallback_config()
            if fallback is None or sink.finished:
                await self._fail(sink, config, exc)
                return
            self._log_fallback(config, fallback, exc)

        try:
            await self._stream_once(fallback, messages, sink)
        except JarvisLLMError as exc:
            await self._fail(sink, fallback, exc)

    async def check_connection(self, config: ProviderConfig) -> ConnectionCheck:
        """Probe the configured provider; never raises."""
        try:
            provider = self.get_provider(config.provider)
        except UnsupportedProviderError as exc:
            return ConnectionCheck(success=False, latency_ms=0, error=str(exc))
        return await provider.check_connection(config)

    async def _invoke_once(
        self,
        config: ProviderConfig,
        messages: list[Message],
        options: InvokeOptions | None,
    ) -> ChatCompletion:
        provider = self.get_provider(config.provider)
        self._logger.info(
            "Using provider: %s, model: %s", provider.name, provider.resolve_model(config)
        )
        return await provider.chat(config, messages, options)

    async def _stream_once(
        self,
        config: ProviderConfig,
        messages: list[Message],
        sink: _ChunkSink,
    ) -> None:
        provider = self.get_provider(config.provider)
        self._logger.info(
            "Streaming from provider: %s, model: %s",
            provider.name,
            provider.resolve_model(config),
        )
        deadline = config.stream_timeout_ms / 1000 if config.stream_timeout_ms else None
        try:
            async with asyncio.timeout(deadline):
                async with aclosing(provider.stream(config, messages)) as chunks:
                    async for chunk in chunks:
                        await sink.emit(chunk)
        except TimeoutError as exc:
            raise ProviderTimeoutError(
                provider.name, f"stream exceeded {config.stream_timeout_ms} ms"
            ) from exc

    async def _fail(self, sink: _ChunkSink, config: ProviderConfig, exc: JarvisLLMError) -> None:
        self._logger.error("Streaming from %s failed: %s", config.provider, exc)
        await sink.emit(StreamChunk.error_chunk(str(exc)))

    def _log_fallback(
        self, config: ProviderConfig, fallback: ProviderConfig, exc: JarvisLLMError
    ) -> None:
        self._logger.warning(
            "Primary provider %s failed (%s), falling back to %s",
            config.provider,
            exc,
            fallback.provider,
        )
