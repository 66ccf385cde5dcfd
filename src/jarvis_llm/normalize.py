"""Convert provider response bodies into the canonical ``ChatCompletion``."""

from __future__ import annotations

import time
from typing import Any

from pydantic import ValidationError

from jarvis_llm.errors import ProviderError
from jarvis_llm.types import ChatCompletion, Usage


def synthetic_id(provider: str) -> str:
    return f"{provider}-{int(time.time() * 1000)}"


def normalize_openai(data: dict[str, Any], provider: str, model: str) -> ChatCompletion:
    """OpenAI-shaped bodies pass through; only missing identifiers are filled in."""
    body = dict(data)
    body.setdefault("id", synthetic_id(provider))
    body.setdefault("created", int(time.time()))
    body.setdefault("model", model)
    body.setdefault("choices", [])
    return _validate(provider, body)


def normalize_ollama(data: dict[str, Any], model: str) -> ChatCompletion:
    message = data.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    body = {
        "id": synthetic_id("ollama"),
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content or ""},
                "finish_reason": "stop",
            }
        ],
        "usage": Usage.from_counts(data.get("prompt_eval_count"), data.get("eval_count")),
    }
    return _validate("ollama", body)


def normalize_anthropic(data: dict[str, Any], model: str) -> ChatCompletion:
    blocks = data.get("content") or []
    first = blocks[0] if isinstance(blocks, list) and blocks else {}
    text = first.get("text") if isinstance(first, dict) else None
    usage = data.get("usage")
    if not isinstance(usage, dict):
        usage = {}
    body = {
        "id": data.get("id") or synthetic_id("anthropic"),
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text or ""},
                "finish_reason": data.get("stop_reason") or "stop",
            }
        ],
        "usage": Usage.from_counts(usage.get("input_tokens"), usage.get("output_tokens")),
    }
    return _validate("anthropic", body)


def _validate(provider: str, body: dict[str, Any]) -> ChatCompletion:
    try:
        return ChatCompletion.model_validate(body)
    except ValidationError as exc:
        raise ProviderError(provider, f"Unexpected response shape: {exc}") from exc
