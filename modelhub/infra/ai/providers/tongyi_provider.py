"""Alibaba Tongyi (DashScope) provider adapter.

Chat and embeddings use DashScope's OpenAI-compatible mode. Rerank has no
compatible-mode endpoint and goes to the native text-rerank service.
"""

from __future__ import annotations

from dataclasses import replace

import httpx

from modelhub.core.exceptions import APIError
from modelhub.infra.ai.capabilities.types import Capability
from modelhub.infra.ai.providers.base import (
    RerankModel,
    RerankParams,
    RerankResult,
    RerankResultItem,
    SettingsInput,
    Usage,
)
from modelhub.infra.ai.providers.http import ClientConfig, post_json
from modelhub.infra.ai.providers.openai_compatible import OpenAICompatibleProvider

TONGYI_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"
DASHSCOPE_RERANK_URL = (
    "https://dashscope.aliyuncs.com/api/v1/services/rerank/text-rerank/text-rerank"
)
DEFAULT_RERANK_MODEL = "gte-rerank-v2"


class DashScopeRerankModel(RerankModel):
    """Native DashScope rerank.

    DashScope reports failures as a JSON body with a ``code`` field, sometimes
    with a 200 status; both cases raise ``APIError``.
    """

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id or DEFAULT_RERANK_MODEL, config.provider)
        self.config = config

    async def do_rerank(self, params: RerankParams) -> RerankResult:
        body = {
            "model": self.model_id,
            "input": {"query": params.query, "documents": params.documents},
            "parameters": {
                "return_documents": bool(params.return_documents),
                "top_n": params.top_n or len(params.documents),
                **params.provider_options,
            },
        }
        data = await post_json(self.config, "", body, operation="rerank")
        if data.get("code"):
            msg = f"DashScope rerank failed: {data.get('code')}: {data.get('message')}"
            raise APIError(msg, provider=self.provider, response_body=str(data))

        results = []
        for item in (data.get("output") or {}).get("results") or []:
            document = item.get("document")
            results.append(
                RerankResultItem(
                    index=item["index"],
                    relevance_score=item.get("relevance_score") or 0.0,
                    document=document.get("text") if isinstance(document, dict) else document,
                ),
            )
        usage = data.get("usage")
        return RerankResult(
            results=results,
            model=self.model_id,
            usage=Usage(total_tokens=usage.get("total_tokens")) if usage else None,
        )


class TongyiProvider(OpenAICompatibleProvider):
    """Tongyi Qianwen adapter (language, embedding, rerank)."""

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            settings,
            provider_id="tongyi",
            name="Tongyi Qianwen",
            default_base_url=TONGYI_BASE_URL,
            capabilities=frozenset(
                {Capability.LANGUAGE, Capability.EMBEDDING, Capability.RERANK},
            ),
            http_client=http_client,
        )
        self.rerank_config = replace(
            self.config,
            base_url=self.settings.option("rerank_url") or DASHSCOPE_RERANK_URL,
        )

    def rerank_model(self, model_id: str) -> RerankModel:
        return DashScopeRerankModel(model_id, self.rerank_config)


def create_tongyi(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> TongyiProvider:
    return TongyiProvider(settings, http_client=http_client)
