"""Multi-provider chat-completion router for the Jarvis dashboard."""

from jarvis_llm.catalog import PROVIDERS, ProviderInfo, list_providers
from jarvis_llm.errors import (
    ConfigurationError,
    JarvisLLMError,
    ProviderError,
    ProviderTimeoutError,
    UnsupportedProviderError,
)
from jarvis_llm.router import LLMRouter
from jarvis_llm.settings import Settings, StoredLLMConfig, configure_logging, load_settings
from jarvis_llm.types import (
    ChatCompletion,
    ConnectionCheck,
    InvokeOptions,
    Message,
    ProviderConfig,
    StreamChunk,
    Usage,
)

__all__ = [
    "PROVIDERS",
    "ProviderInfo",
    "list_providers",
    "JarvisLLMError",
    "ConfigurationError",
    "ProviderError",
    "ProviderTimeoutError",
    "UnsupportedProviderError",
    "LLMRouter",
    "Settings",
    "StoredLLMConfig",
    "configure_logging",
    "load_settings",
    "ChatCompletion",
    "ConnectionCheck",
    "InvokeOptions",
    "Message",
    "ProviderConfig",
    "StreamChunk",
    "Usage",
]
