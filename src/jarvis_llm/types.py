"""Provider-agnostic request/response models."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ProviderName = Literal["forge", "ollama", "openai", "anthropic", "n2"]
Role = Literal["system", "user", "assistant"]
ChunkType = Literal["content", "done", "error"]

PROVIDER_NAMES: tuple[str, ...] = ("forge", "ollama", "openai", "anthropic", "n2")


class Message(BaseModel):
    """Single chat message. Structured content is sent as a JSON string."""

    role: Role
    content: str | list[Any] | dict[str, Any]

    def wire_content(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return json.dumps(self.content)


class InvokeOptions(BaseModel):
    """Per-call overrides that take precedence over the provider config."""

    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0, le=1)


class ProviderConfig(BaseModel):
    """Settings for one routed call.

    Instances are frozen: a fallback hop works on a derived copy produced by
    :meth:`fallback_config`, never on the caller's object.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderName = "forge"
    api_url: str | None = None
    api_key: str | None = None
    model: str | None = None
    temperature: float = Field(default=0.7, ge=0, le=1)
    max_tokens: int = Field(default=4096, gt=0)
    timeout_ms: int = Field(default=30000, gt=0)
    stream_enabled: bool = True
    fallback_enabled: bool = False
    fallback_provider: ProviderName | None = None
    # wall-clock limit for a whole stream; None leaves only the per-read timeout
    stream_timeout_ms: int | None = Field(default=None, gt=0)

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000

    def fallback_config(self) -> ProviderConfig | None:
        """Return the config for the single fallback hop, or None if not eligible."""
        if not self.fallback_enabled:
            return None
        if self.fallback_provider is None or self.fallback_provider == self.provider:
            return None
        return self.model_copy(
            update={"provider": self.fallback_provider, "fallback_enabled": False}
        )


class Usage(BaseModel):
    """Token accounting in the OpenAI naming."""

    model_config = ConfigDict(extra="allow")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(cls, prompt_tokens: Any, completion_tokens: Any) -> Usage:
        """Build usage from raw provider counts; anything that is not an int counts as 0."""
        prompt = _token_count(prompt_tokens)
        completion = _token_count(completion_tokens)
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )


class CompletionMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: str | None = ""


class Choice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: CompletionMessage = Field(default_factory=CompletionMessage)
    finish_reason: str | None = None


class ChatCompletion(BaseModel):
    """Canonical chat-completion result returned for every provider."""

    # provider-specific fields are kept as-is
    model_config = ConfigDict(extra="allow")

    id: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None = None

    @property
    def text(self) -> str:
        """Content of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class StreamChunk(BaseModel):
    """Streaming event delivered to a caller's sink.

    ``done`` and ``error`` are terminal; a stream carries exactly one of them.
    """

    type: ChunkType
    content: str | None = None
    usage: Usage | None = None
    error: str | None = None

    @classmethod
    def content_chunk(cls, content: str) -> StreamChunk:
        return cls(type="content", content=content)

    @classmethod
    def done_chunk(cls, usage: Usage) -> StreamChunk:
        return cls(type="done", usage=usage)

    @classmethod
    def error_chunk(cls, error: str) -> StreamChunk:
        return cls(type="error", error=error)

    @property
    def is_terminal(self) -> bool:
        return self.type != "content"


class ConnectionCheck(BaseModel):
    """Outcome of probing a provider endpoint."""

    success: bool
    latency_ms: int
    error: str | None = None


def _token_count(value: Any) -> int:
    # bool is an int subclass but never a token count
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0
