"""N2 supervisor provider: local, unauthenticated, OpenAI wire format."""

from __future__ import annotations

from jarvis_llm.providers.openai import OpenAICompatibleProvider
from jarvis_llm.types import ProviderConfig


class N2Provider(OpenAICompatibleProvider):
    name = "n2"

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _check(self, config: ProviderConfig) -> None:
        await self._probe(f"{self.base_url(config)}/health")
