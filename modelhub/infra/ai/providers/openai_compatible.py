"""Generic adapter for vendors that speak the OpenAI wire format.

One class serves the generic ``custom`` adapter, the registry's fallback for
unknown ids, and the family of hosted vendors that only differ by endpoint
and capability subset (DeepSeek, Moonshot, SiliconFlow, Zhipu, ...).

Usage:
    provider = create_compatible_vendor("deepseek", {"api_key": "sk-..."})
    model = provider.language_model("deepseek-chat")

    local = create_openai_compatible({"base_url": "http://localhost:8000/v1"})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from modelhub.core.exceptions import ProviderNotFoundError
from modelhub.infra.ai.capabilities.types import Capability
from modelhub.infra.ai.providers.base import (
    AIProvider,
    EmbeddingModel,
    ImageModel,
    LanguageModel,
    ModerationModel,
    RerankModel,
    SettingsInput,
    SpeechModel,
    TranscriptionModel,
    coerce_settings,
)
from modelhub.infra.ai.providers.http import ClientConfig, SDKClientHolder
from modelhub.infra.ai.providers.openai_models import (
    OpenAIChatLanguageModel,
    OpenAIEmbeddingModel,
    OpenAIImageModel,
    OpenAIModerationModel,
    OpenAIRerankModel,
    OpenAISpeechModel,
    OpenAITranscriptionModel,
    openai_client_builder,
)

logger = logging.getLogger(__name__)

ALL_CAPABILITIES: frozenset[Capability] = frozenset(Capability)
LANGUAGE_ONLY: frozenset[Capability] = frozenset({Capability.LANGUAGE})
LANGUAGE_EMBEDDING: frozenset[Capability] = frozenset(
    {Capability.LANGUAGE, Capability.EMBEDDING},
)


class OpenAICompatibleProvider(AIProvider):
    """Adapter for any OpenAI-compatible endpoint.

    Capabilities outside ``capabilities`` have their accessor set to None on
    the instance, so the adapter exposes exactly what the vendor supports.

    Attributes:
        settings: Normalized construction settings.
        config: Resolved endpoint, credentials and headers.
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        provider_id: str = "custom",
        name: str = "Custom",
        default_base_url: str | None = None,
        capabilities: frozenset[Capability] = ALL_CAPABILITIES,
        include_stream_usage: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = coerce_settings(settings)
        self.id = provider_id
        self.name = name
        self.include_stream_usage = include_stream_usage
        self.config = ClientConfig(
            provider=provider_id,
            base_url=self.settings.base_url or default_base_url,
            api_key=self.settings.api_key,
            headers=self.settings.headers,
            timeout=self.settings.timeout,
            http_client=http_client,
        )
        self._sdk_client = SDKClientHolder(self._build_sdk_client)

        for capability in Capability:
            if capability is not Capability.LANGUAGE and capability not in capabilities:
                setattr(self, capability.accessor, None)

    def _build_sdk_client(self) -> Any:
        # Without a base URL the SDK would silently target api.openai.com
        self.config.require_base_url()
        return openai_client_builder(self.config)()

    def language_model(self, model_id: str) -> LanguageModel:
        return OpenAIChatLanguageModel(
            model_id,
            self.id,
            self._sdk_client,
            include_stream_usage=self.include_stream_usage,
        )

    def embedding_model(self, model_id: str) -> EmbeddingModel:
        return OpenAIEmbeddingModel(model_id, self.id, self._sdk_client)

    def image_model(self, model_id: str) -> ImageModel:
        return OpenAIImageModel(model_id, self.config)

    def speech_model(self, model_id: str) -> SpeechModel:
        return OpenAISpeechModel(model_id, self.config)

    def transcription_model(self, model_id: str) -> TranscriptionModel:
        return OpenAITranscriptionModel(model_id, self.config)

    def moderation_model(self, model_id: str) -> ModerationModel:
        return OpenAIModerationModel(model_id, self.config)

    def rerank_model(self, model_id: str) -> RerankModel:
        return OpenAIRerankModel(model_id, self.config)


def create_openai_compatible(
    settings: SettingsInput = None,
    *,
    provider_id: str | None = None,
    name: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> OpenAICompatibleProvider:
    """Create the generic adapter.

    The id and display name come from the arguments, then from the ``id`` /
    ``name`` extras in settings, and default to ``custom`` / ``Custom``.
    There is no default endpoint: calls fail with ConfigurationError until a
    ``base_url`` is supplied.
    """
    resolved = coerce_settings(settings)
    resolved_id = provider_id if provider_id is not None else resolved.option("id", "custom")
    resolved_name = name if name is not None else resolved.option("name")
    if resolved_name is None:
        resolved_name = "Custom" if resolved_id == "custom" else resolved_id
    return OpenAICompatibleProvider(
        resolved,
        provider_id=resolved_id,
        name=resolved_name,
        http_client=http_client,
    )


# ──────────────────────────────────────────────────────────────
# Hosted OpenAI-compatible vendors
# ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CompatibleVendor:
    """Static description of a hosted OpenAI-compatible vendor."""

    id: str
    name: str
    base_url: str
    capabilities: frozenset[Capability]
    description: str


COMPATIBLE_VENDORS: dict[str, CompatibleVendor] = {
    vendor.id: vendor
    for vendor in (
        CompatibleVendor(
            "deepseek",
            "DeepSeek",
            "https://api.deepseek.com/v1",
            LANGUAGE_ONLY,
            "DeepSeek chat and reasoning models",
        ),
        CompatibleVendor(
            "moonshot",
            "Moonshot AI",
            "https://api.moonshot.cn/v1",
            LANGUAGE_ONLY,
            "Moonshot Kimi models",
        ),
        CompatibleVendor(
            "siliconflow",
            "SiliconFlow",
            "https://api.siliconflow.cn/v1",
            frozenset(
                {
                    Capability.LANGUAGE,
                    Capability.EMBEDDING,
                    Capability.RERANK,
                    Capability.SPEECH,
                    Capability.IMAGE,
                },
            ),
            "SiliconFlow hosted open models",
        ),
        CompatibleVendor(
            "hunyuan",
            "Tencent Hunyuan",
            "https://api.hunyuan.cloud.tencent.com/v1",
            LANGUAGE_EMBEDDING,
            "Tencent Hunyuan models",
        ),
        CompatibleVendor(
            "volcengine",
            "Volcengine Ark",
            "https://ark.cn-beijing.volces.com/api/v3",
            LANGUAGE_EMBEDDING,
            "ByteDance Doubao models on Volcengine Ark",
        ),
        CompatibleVendor(
            "wenxin",
            "Baidu Wenxin",
            "https://qianfan.baidubce.com/v2",
            frozenset({Capability.LANGUAGE, Capability.EMBEDDING, Capability.RERANK}),
            "Baidu ERNIE models on Qianfan",
        ),
        CompatibleVendor(
            "zhipuai",
            "Zhipu AI",
            "https://open.bigmodel.cn/api/paas/v4",
            frozenset({Capability.LANGUAGE, Capability.EMBEDDING, Capability.RERANK}),
            "Zhipu GLM models",
        ),
        CompatibleVendor(
            "gitee_ai",
            "Gitee AI",
            "https://ai.gitee.com/v1",
            LANGUAGE_ONLY,
            "Gitee AI serverless models",
        ),
        CompatibleVendor(
            "spark",
            "iFlytek Spark",
            "https://spark-api-open.xf-yun.com/v1",
            LANGUAGE_ONLY,
            "iFlytek Spark models",
        ),
        CompatibleVendor(
            "x",
            "xAI",
            "https://api.x.ai/v1",
            LANGUAGE_ONLY,
            "xAI Grok models",
        ),
        CompatibleVendor(
            "openrouter",
            "OpenRouter",
            "https://openrouter.ai/api/v1",
            LANGUAGE_EMBEDDING,
            "OpenRouter model marketplace",
        ),
    )
}


def create_compatible_vendor(
    vendor_id: str,
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> OpenAICompatibleProvider:
    """Create the adapter for a hosted vendor listed in ``COMPATIBLE_VENDORS``.

    Raises:
        ProviderNotFoundError: If ``vendor_id`` is not a known hosted vendor.
    """
    vendor = COMPATIBLE_VENDORS.get(vendor_id)
    if vendor is None:
        raise ProviderNotFoundError(vendor_id)
    return OpenAICompatibleProvider(
        settings,
        provider_id=vendor.id,
        name=vendor.name,
        default_base_url=vendor.base_url,
        capabilities=vendor.capabilities,
        http_client=http_client,
    )
