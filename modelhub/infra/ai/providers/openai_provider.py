"""OpenAI provider adapter.

Supports every capability: GPT chat models, text embeddings, DALL-E / GPT
image generation, TTS, Whisper transcription, moderation and rerank.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import httpx

from modelhub.infra.ai.providers.base import (
    ImageModel,
    ModerationModel,
    RerankModel,
    SettingsInput,
    SpeechModel,
    TranscriptionModel,
)
from modelhub.infra.ai.providers.openai_compatible import (
    ALL_CAPABILITIES,
    OpenAICompatibleProvider,
)
from modelhub.infra.ai.providers.openai_models import (
    OpenAIImageModel,
    OpenAIModerationModel,
    OpenAIRerankModel,
    OpenAISpeechModel,
    OpenAITranscriptionModel,
    openai_client_builder,
)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI adapter.

    Reads the optional ``organization`` and ``project`` extras from settings
    and forwards them to the SDK client.

    Usage:
        provider = OpenAIProvider({"api_key": "sk-..."})
        model = provider.image_model("dall-e-3")
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            settings,
            provider_id="openai",
            name="OpenAI",
            default_base_url=OPENAI_BASE_URL,
            capabilities=ALL_CAPABILITIES,
            http_client=http_client,
        )
        self.organization: str | None = self.settings.option("organization")
        self.project: str | None = self.settings.option("project")

        # REST model clients do not go through the SDK, so send the ids as headers
        scope_headers: dict[str, str] = {}
        if self.organization:
            scope_headers["OpenAI-Organization"] = self.organization
        if self.project:
            scope_headers["OpenAI-Project"] = self.project
        self.rest_config = replace(self.config, headers={**scope_headers, **self.config.headers})

    def _build_sdk_client(self) -> Any:
        return openai_client_builder(
            self.config,
            organization=self.organization,
            project=self.project,
        )()

    def image_model(self, model_id: str) -> ImageModel:
        return OpenAIImageModel(model_id, self.rest_config)

    def speech_model(self, model_id: str) -> SpeechModel:
        return OpenAISpeechModel(model_id, self.rest_config)

    def transcription_model(self, model_id: str) -> TranscriptionModel:
        return OpenAITranscriptionModel(model_id, self.rest_config)

    def moderation_model(self, model_id: str) -> ModerationModel:
        return OpenAIModerationModel(model_id, self.rest_config)

    def rerank_model(self, model_id: str) -> RerankModel:
        return OpenAIRerankModel(model_id, self.rest_config)


def create_openai(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> OpenAIProvider:
    return OpenAIProvider(settings, http_client=http_client)
