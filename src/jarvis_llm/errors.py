"""Package specific exception hierarchy."""


class JarvisLLMError(Exception):
    """Base exception for jarvis_llm package."""


class ConfigurationError(JarvisLLMError):
    """Raised when a provider is missing a required credential or URL."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class UnsupportedProviderError(JarvisLLMError):
    """Raised when no adapter is registered for a provider."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown LLM provider: {provider}")
        self.provider = provider


class ProviderError(JarvisLLMError):
    """Represents provider-specific HTTP or API errors."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        suffix = f" (status {status_code})" if status_code is not None else ""
        super().__init__(f"{provider}: {message}{suffix}")
        self.provider = provider
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its configured timeout."""
