import asyncio
import json
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, TypeVar

import httpx

from jarvis_llm.router import LLMRouter
from jarvis_llm.settings import Settings
from jarvis_llm.types import Message, StreamChunk

T = TypeVar("T")

Handler = Callable[[httpx.Request], Any]

USER_HI = [Message(role="user", content="hi")]


def run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def openai_body(content: str = "Hello", prompt: int = 3, completion: int = 2) -> dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gemini-2.5-flash",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt,
            "completion_tokens": completion,
            "total_tokens": prompt + completion,
        },
    }


def request_json(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


async def byte_chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


class RouterHarness:
    """An LLMRouter wired to an in-memory transport that records every request."""

    def __init__(self, handler: Handler, settings: Settings | None = None) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        self.client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        self.router = LLMRouter(
            settings=settings or Settings(forge_api_key="test-forge-key"),
            client=self.client,
        )

    async def collect(self, config: Any, messages: list[Message] | None = None) -> list[StreamChunk]:
        chunks: list[StreamChunk] = []
        await self.router.stream(config, messages or USER_HI, chunks.append)
        return chunks


def origin(request: httpx.Request) -> str:
    url = request.url
    port = f":{url.port}" if url.port else ""
    return f"{url.scheme}://{url.host}{port}"


def route_by_origin(routes: dict[str, Handler]) -> Handler:
    """Dispatch requests to per-origin handlers, e.g. "http://localhost:8000"."""

    def _handler(request: httpx.Request) -> Any:
        return routes[origin(request)](request)

    return _handler
