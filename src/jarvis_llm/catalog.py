"""Static description of the supported providers."""

from __future__ import annotations

from dataclasses import dataclass

from jarvis_llm.types import ProviderName


@dataclass(frozen=True)
class ProviderInfo:
    """What a settings screen needs to know about a provider."""

    id: ProviderName
    name: str
    description: str
    requires_api_key: bool
    requires_url: bool
    default_model: str
    default_url: str
    models: tuple[str, ...]


PROVIDERS: dict[ProviderName, ProviderInfo] = {
    "forge": ProviderInfo(
        id="forge",
        name="Forge API",
        description="Hosted gateway with built-in credentials (default)",
        requires_api_key=False,
        requires_url=False,
        default_model="gemini-2.5-flash",
        default_url="https://forge.manus.im",
        models=("default",),
    ),
    "ollama": ProviderInfo(
        id="ollama",
        name="Ollama",
        description="Local LLM served by Ollama",
        requires_api_key=False,
        requires_url=True,
        default_model="llama3.2:3b",
        default_url="http://localhost:11434",
        models=(
            "llama3.2:1b",
            "llama3.2:3b",
            "llama3.1:8b",
            "llama3.1:70b",
            "mistral:7b",
            "codellama:34b",
        ),
    ),
    "openai": ProviderInfo(
        id="openai",
        name="OpenAI",
        description="OpenAI API (GPT-4, GPT-3.5)",
        requires_api_key=True,
        requires_url=False,
        default_model="gpt-4o-mini",
        default_url="https://api.openai.com",
        models=("gpt-4o-mini", "gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"),
    ),
    "anthropic": ProviderInfo(
        id="anthropic",
        name="Anthropic",
        description="Anthropic API (Claude)",
        requires_api_key=True,
        requires_url=False,
        default_model="claude-3-haiku-20240307",
        default_url="https://api.anthropic.com",
        models=(
            "claude-3-haiku-20240307",
            "claude-3-sonnet-20240229",
            "claude-3-opus-20240229",
        ),
    ),
    "n2": ProviderInfo(
        id="n2",
        name="N2 Supervisor",
        description="Local LLM behind the N2 supervisor (production)",
        requires_api_key=False,
        requires_url=True,
        default_model="llama3.1:8b",
        default_url="http://localhost:8000",
        models=("llama3.1:8b", "llama3.1:70b", "llama3.1:405b"),
    ),
}


def list_providers() -> list[ProviderInfo]:
    """Return every provider in declaration order."""
    return list(PROVIDERS.values())


def get_provider_info(name: ProviderName) -> ProviderInfo:
    """Return the catalog entry for one provider."""
    return PROVIDERS[name]
