"""Environment-based configuration and persisted user settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from jarvis_llm.types import PROVIDER_NAMES, ProviderConfig, ProviderName

MASKED_API_KEY = "••••••••"

_DEFAULT_FORGE_URL = "https://forge.manus.im"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings read from the environment.

    - FORGE_API_URL / FORGE_API_KEY: hosted gateway endpoint and bearer key
    - LLM_PROVIDER: provider used when a user has no saved settings (default "forge")
    - OLLAMA_URL, N2_API_URL: base URLs for the local servers
    - OLLAMA_MODEL, OPENAI_MODEL: model overrides for the environment config
    - LLM_TIMEOUT_MS: request timeout (default 30000)
    - JARVIS_LOG_LEVEL: logging level name (default "INFO")
    """

    forge_api_url: str = _DEFAULT_FORGE_URL
    forge_api_key: str | None = None
    llm_provider: ProviderName = "forge"
    ollama_url: str | None = None
    n2_api_url: str | None = None
    ollama_model: str | None = None
    openai_model: str | None = None
    timeout_ms: int = 30000
    log_level: str = "INFO"

    def default_config(self) -> ProviderConfig:
        """Active config for callers without saved settings."""
        return ProviderConfig(
            provider=self.llm_provider,
            api_url=self.ollama_url or self.n2_api_url or None,
            model=self.ollama_model or self.openai_model or "default",
            temperature=0.7,
            max_tokens=4096,
            timeout_ms=self.timeout_ms,
            stream_enabled=True,
            fallback_enabled=True,
            fallback_provider="forge",
        )


def load_settings(*, dotenv: bool = True) -> Settings:
    """Build ``Settings`` from the environment, loading a .env file first."""
    if dotenv:
        load_dotenv()

    provider = (os.getenv("LLM_PROVIDER") or "").strip().lower()
    if provider not in PROVIDER_NAMES:
        provider = "forge"

    timeout_ms = 30000
    raw_timeout = os.getenv("LLM_TIMEOUT_MS")
    if raw_timeout:
        try:
            timeout_ms = max(5000, min(120000, int(raw_timeout)))
        except ValueError:
            logging.getLogger(__name__).warning("Ignoring invalid LLM_TIMEOUT_MS=%r", raw_timeout)

    log_level = (os.getenv("JARVIS_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in logging.getLevelNamesMapping():
        logging.getLogger(__name__).warning("Ignoring invalid JARVIS_LOG_LEVEL=%r", log_level)
        log_level = "INFO"

    return Settings(
        forge_api_url=(os.getenv("FORGE_API_URL") or _DEFAULT_FORGE_URL).strip(),
        forge_api_key=_env("FORGE_API_KEY"),
        llm_provider=provider,  # type: ignore[arg-type]
        ollama_url=_env("OLLAMA_URL"),
        n2_api_url=_env("N2_API_URL"),
        ollama_model=_env("OLLAMA_MODEL"),
        openai_model=_env("OPENAI_MODEL"),
        timeout_ms=timeout_ms,
        log_level=log_level,
    )


def configure_logging(level: str | int = "INFO") -> None:
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _env(name: str) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or None


class StoredLLMConfig(BaseModel):
    """Per-user LLM settings as they are persisted.

    Temperature is kept on a 0..100 scale, the way the settings form edits it.
    """

    provider: ProviderName = "forge"
    api_url: str = Field(default="", max_length=512)
    api_key: str = Field(default="", max_length=512)
    model: str = Field(default="default", max_length=100)
    temperature: int = Field(default=70, ge=0, le=100)
    max_tokens: int = Field(default=4096, ge=100, le=32000)
    timeout_ms: int = Field(default=30000, ge=5000, le=120000)
    stream_enabled: bool = True
    fallback_enabled: bool = True
    fallback_provider: ProviderName = "forge"

    def to_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider=self.provider,
            api_url=self.api_url or None,
            api_key=self.api_key or None,
            model=self.model or None,
            temperature=self.temperature / 100,
            max_tokens=self.max_tokens,
            timeout_ms=self.timeout_ms,
            stream_enabled=self.stream_enabled,
            fallback_enabled=self.fallback_enabled,
            fallback_provider=self.fallback_provider,
        )

    def masked(self) -> StoredLLMConfig:
        """Copy safe to return to a client: the API key is replaced by a mask."""
        return self.model_copy(update={"api_key": MASKED_API_KEY if self.api_key else ""})

    def merge_update(self, update: dict) -> StoredLLMConfig:
        """Apply a partial update; a masked key leaves the stored key untouched."""
        changes = {key: value for key, value in update.items() if value is not None}
        if changes.get("api_key") == MASKED_API_KEY:
            del changes["api_key"]
        return self.model_validate({**self.model_dump(), **changes})
