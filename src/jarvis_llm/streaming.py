"""Demultiplexers for the three streaming wire formats.

Each demultiplexer consumes raw body bytes as they arrive and yields
``StreamChunk`` objects. All of them:

* stop reading after the first terminal (``done``) chunk,
* skip lines that are not valid JSON objects, counting them in ``StreamStats``,
* yield a ``done`` chunk with the usage seen so far if the body ends without
  a terminal marker, so a stream always has exactly one terminal chunk.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any

from jarvis_llm.framing import LineFramer
from jarvis_llm.types import StreamChunk, Usage

_logger = logging.getLogger(__name__)

_DATA_PREFIX = "data:"
_DONE_SENTINEL = "[DONE]"


@dataclass
class StreamStats:
    """Per-stream diagnostics."""

    skipped_lines: int = 0


async def iter_lines(byte_stream: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield complete text lines from an async byte stream."""
    framer = LineFramer()
    async for data in byte_stream:
        for line in framer.feed(data):
            yield line
    for line in framer.flush():
        yield line


async def iter_sse_chunks(
    byte_stream: AsyncIterable[bytes],
    stats: StreamStats | None = None,
) -> AsyncIterator[StreamChunk]:
    """OpenAI-style server-sent events (forge, openai, n2)."""
    stats = stats if stats is not None else StreamStats()
    usage = Usage()

    async with aclosing(iter_lines(byte_stream)) as lines:
        async for line in lines:
            payload = _sse_payload(line)
            if payload is None:
                continue
            if payload == _DONE_SENTINEL:
                yield StreamChunk.done_chunk(usage)
                return

            event = _parse_object(payload, stats)
            if event is None:
                continue

            content = _extract_delta_text(event)
            if content:
                yield StreamChunk.content_chunk(content)

            # usage is reported as running totals, so the last one wins
            reported = event.get("usage")
            if isinstance(reported, dict):
                usage = Usage.from_counts(
                    reported.get("prompt_tokens"), reported.get("completion_tokens")
                )

    yield StreamChunk.done_chunk(usage)


async def iter_ndjson_chunks(
    byte_stream: AsyncIterable[bytes],
    stats: StreamStats | None = None,
) -> AsyncIterator[StreamChunk]:
    """Newline-delimited JSON objects (ollama)."""
    stats = stats if stats is not None else StreamStats()

    async with aclosing(iter_lines(byte_stream)) as lines:
        async for line in lines:
            line = line.strip()
            if not line:
                continue

            event = _parse_object(line, stats)
            if event is None:
                continue

            message = event.get("message")
            if isinstance(message, dict):
                content = message.get("content")
                if isinstance(content, str) and content:
                    yield StreamChunk.content_chunk(content)

            if event.get("done"):
                yield StreamChunk.done_chunk(
                    Usage.from_counts(event.get("prompt_eval_count"), event.get("eval_count"))
                )
                return

    yield StreamChunk.done_chunk(Usage())


async def iter_anthropic_chunks(
    byte_stream: AsyncIterable[bytes],
    stats: StreamStats | None = None,
) -> AsyncIterator[StreamChunk]:
    """Anthropic Messages event stream."""
    stats = stats if stats is not None else StreamStats()
    prompt_tokens = 0
    completion_tokens = 0

    async with aclosing(iter_lines(byte_stream)) as lines:
        async for line in lines:
            payload = _sse_payload(line)
            if payload is None:
                continue

            event = _parse_object(payload, stats)
            if event is None:
                continue

            event_type = event.get("type")
            if event_type == "content_block_delta":
                delta = event.get("delta") or {}
                text = delta.get("text") if isinstance(delta, dict) else None
                if isinstance(text, str) and text:
                    yield StreamChunk.content_chunk(text)
            elif event_type == "message_start":
                message = event.get("message") or {}
                usage = message.get("usage") if isinstance(message, dict) else None
                if isinstance(usage, dict):
                    prompt_tokens = usage.get("input_tokens") or 0
            elif event_type == "message_delta":
                usage = event.get("usage")
                if isinstance(usage, dict):
                    completion_tokens = usage.get("output_tokens") or 0
            elif event_type == "message_stop":
                yield StreamChunk.done_chunk(Usage.from_counts(prompt_tokens, completion_tokens))
                return

    yield StreamChunk.done_chunk(Usage.from_counts(prompt_tokens, completion_tokens))


def _sse_payload(line: str) -> str | None:
    line = line.strip()
    if not line.startswith(_DATA_PREFIX):
        return None
    return line[len(_DATA_PREFIX) :].strip()


def _parse_object(text: str, stats: StreamStats) -> dict[str, Any] | None:
    try:
        event = json.loads(text)
    except json.JSONDecodeError:
        event = None
    if not isinstance(event, dict):
        stats.skipped_lines += 1
        _logger.debug("Skipping malformed streaming line: %s", text)
        return None
    return event


def _extract_delta_text(event: dict[str, Any]) -> str:
    """Extract the standard OpenAI streaming text delta (delta.content)."""
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    choice = choices[0]
    if not isinstance(choice, dict):
        return ""
    delta = choice.get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""
