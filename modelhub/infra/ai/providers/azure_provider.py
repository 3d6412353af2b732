"""Azure OpenAI provider adapter.

Model ids are Azure deployment names. The adapter needs either a resource
``endpoint`` (``https://<resource>.openai.azure.com``) or a full ``base_url``
plus an ``api_version``; both are read from settings extras.
"""

from __future__ import annotations

from typing import Any

import httpx

from modelhub.core.exceptions import ConfigurationError
from modelhub.infra.ai.providers.base import SettingsInput
from modelhub.infra.ai.providers.http import sdk_timeout
from modelhub.infra.ai.providers.openai_compatible import (
    LANGUAGE_EMBEDDING,
    OpenAICompatibleProvider,
)

DEFAULT_AZURE_API_VERSION = "2024-10-21"


class AzureOpenAIProvider(OpenAICompatibleProvider):
    """Azure OpenAI adapter for chat and embedding deployments.

    Usage:
        provider = AzureOpenAIProvider({
            "api_key": "...",
            "endpoint": "https://my-resource.openai.azure.com",
            "api_version": "2024-10-21",
        })
        model = provider.language_model("gpt-4o-deployment")
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            settings,
            provider_id="azure",
            name="Azure OpenAI",
            capabilities=LANGUAGE_EMBEDDING,
            http_client=http_client,
        )
        self.endpoint: str | None = self.settings.option("endpoint")
        self.api_version: str = self.settings.option("api_version") or DEFAULT_AZURE_API_VERSION

    def _build_sdk_client(self) -> Any:
        from openai import AsyncAzureOpenAI

        kwargs: dict[str, Any] = {
            "api_key": self.config.api_key,
            "api_version": self.api_version,
            "default_headers": dict(self.config.headers) or None,
            "max_retries": 0,
            "timeout": sdk_timeout(self.config.timeout),
        }
        # The SDK rejects base_url and azure_endpoint together
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        elif self.endpoint:
            kwargs["azure_endpoint"] = self.endpoint
        else:
            msg = "Azure OpenAI requires an 'endpoint' or 'base_url' setting"
            raise ConfigurationError(msg, provider=self.id)
        if self.config.http_client is not None:
            kwargs["http_client"] = self.config.http_client
        return AsyncAzureOpenAI(**kwargs)


def create_azure(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AzureOpenAIProvider:
    return AzureOpenAIProvider(settings, http_client=http_client)
