"""Forge gateway provider (hosted default, credentials from the environment)."""

from __future__ import annotations

import httpx

from jarvis_llm.errors import ConfigurationError
from jarvis_llm.providers.openai import OpenAICompatibleProvider
from jarvis_llm.settings import Settings
from jarvis_llm.types import ProviderConfig


class ForgeProvider(OpenAICompatibleProvider):
    """OpenAI-compatible gateway authenticated with the deployment's own key."""

    name = "forge"

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        super().__init__(client)
        self._settings = settings

    def base_url(self, config: ProviderConfig) -> str:
        # the gateway is a deployment setting, not a per-user one
        return self._settings.forge_api_url.rstrip("/")

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        api_key = self._settings.forge_api_key
        if not api_key:
            raise ConfigurationError(self.name, "Forge API key not configured")
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def _check(self, config: ProviderConfig) -> None:
        headers = self.headers(config)
        del headers["Content-Type"]
        await self._probe(f"{self.base_url(config)}/v1/models", headers=headers)
