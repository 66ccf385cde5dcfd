"""Provider definitions for jarvis_llm."""

import httpx

from jarvis_llm.settings import Settings

from .anthropic import AnthropicProvider
from .base import BaseProvider
from .forge import ForgeProvider
from .n2 import N2Provider
from .ollama import OllamaProvider
from .openai import OpenAICompatibleProvider, OpenAIProvider


def default_providers(client: httpx.AsyncClient, settings: Settings) -> list[BaseProvider]:
    """One adapter per supported provider, sharing a single HTTP client."""
    return [
        ForgeProvider(client, settings),
        OllamaProvider(client),
        OpenAIProvider(client),
        AnthropicProvider(client),
        N2Provider(client),
    ]


__all__ = [
    "BaseProvider",
    "OpenAICompatibleProvider",
    "ForgeProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "N2Provider",
    "default_providers",
]
