"""Cohere provider adapter.

Uses the Cohere v2 REST API over httpx: ``/chat`` (optionally streamed as
server-sent events), ``/embed`` and ``/rerank``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

import httpx

from modelhub.infra.ai.providers.base import (
    AIProvider,
    EmbeddingModel,
    EmbeddingParams,
    EmbeddingResult,
    LanguageModel,
    LanguageModelCallParams,
    LanguageModelResult,
    RerankModel,
    RerankParams,
    RerankResult,
    RerankResultItem,
    SettingsInput,
    StreamPart,
    Usage,
    coerce_settings,
)
from modelhub.infra.ai.providers.http import (
    ClientConfig,
    iter_sse_json,
    post_json,
    stream_lines,
)

logger = logging.getLogger(__name__)

COHERE_BASE_URL = "https://api.cohere.com/v2"


def _map_usage(usage: dict[str, Any] | None) -> Usage | None:
    tokens = (usage or {}).get("tokens")
    if not tokens:
        return None
    input_tokens = tokens.get("input_tokens")
    output_tokens = tokens.get("output_tokens")
    total = None
    if input_tokens is not None and output_tokens is not None:
        total = int(input_tokens + output_tokens)
    return Usage(input_tokens=input_tokens, output_tokens=output_tokens, total_tokens=total)


class CohereLanguageModel(LanguageModel):
    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    def _request_body(self, params: LanguageModelCallParams) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self.model_id,
            "messages": [m.model_dump() for m in params.messages],
        }
        if params.temperature is not None:
            body["temperature"] = params.temperature
        if params.max_tokens is not None:
            body["max_tokens"] = params.max_tokens
        if params.top_p is not None:
            body["p"] = params.top_p
        if params.stop:
            body["stop_sequences"] = params.stop
        body.update(params.provider_options)
        return body

    async def do_generate(self, params: LanguageModelCallParams) -> LanguageModelResult:
        data = await post_json(self.config, "/chat", self._request_body(params), operation="chat")
        content = (data.get("message") or {}).get("content") or []
        return LanguageModelResult(
            text="".join(part.get("text", "") for part in content if part.get("type") == "text"),
            finish_reason=data.get("finish_reason"),
            usage=_map_usage(data.get("usage")),
            model=self.model_id,
            response_id=data.get("id"),
        )

    async def do_stream(self, params: LanguageModelCallParams) -> AsyncIterator[StreamPart]:
        body = self._request_body(params)
        body["stream"] = True
        lines = stream_lines(self.config, "/chat", body, operation="chat")

        finish_reason: str | None = None
        usage: Usage | None = None
        async with aclosing(iter_sse_json(lines)) as events:
            async for event in events:
                event_type = event.get("type")
                delta = event.get("delta") or {}
                if event_type == "content-delta":
                    text = ((delta.get("message") or {}).get("content") or {}).get("text")
                    if text:
                        yield StreamPart(type="text-delta", text=text)
                elif event_type == "message-end":
                    finish_reason = delta.get("finish_reason")
                    usage = _map_usage(delta.get("usage"))
        yield StreamPart(type="finish", finish_reason=finish_reason, usage=usage)


class CohereEmbeddingModel(EmbeddingModel):
    """``/embed`` with float vectors; ``input_type`` defaults to search_document."""

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_embed(self, params: EmbeddingParams) -> EmbeddingResult:
        body = {
            "model": self.model_id,
            "texts": params.values,
            "input_type": "search_document",
            "embedding_types": ["float"],
            **params.provider_options,
        }
        data = await post_json(self.config, "/embed", body, operation="embed")
        billed = (data.get("meta") or {}).get("billed_units") or {}
        input_tokens = billed.get("input_tokens")
        return EmbeddingResult(
            embeddings=(data.get("embeddings") or {}).get("float") or [],
            usage=Usage(input_tokens=input_tokens, total_tokens=input_tokens)
            if input_tokens is not None
            else None,
        )


class CohereRerankModel(RerankModel):
    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_rerank(self, params: RerankParams) -> RerankResult:
        body: dict[str, Any] = {
            "model": self.model_id,
            "query": params.query,
            "documents": params.documents,
            "top_n": params.top_n or len(params.documents),
            **params.provider_options,
        }
        data = await post_json(self.config, "/rerank", body, operation="rerank")
        # v2 rerank never echoes documents back; fill them in from the request
        results = [
            RerankResultItem(
                index=item["index"],
                relevance_score=item.get("relevance_score") or 0.0,
                document=params.documents[item["index"]] if params.return_documents else None,
            )
            for item in data.get("results") or []
        ]
        billed = (data.get("meta") or {}).get("billed_units") or {}
        search_units = billed.get("search_units")
        return RerankResult(
            results=results,
            model=self.model_id,
            usage=Usage(total_tokens=int(search_units)) if search_units is not None else None,
        )


class CohereProvider(AIProvider):
    """Cohere adapter (language, embedding, rerank).

    Usage:
        provider = CohereProvider({"api_key": "..."})
        model = provider.rerank_model("rerank-v3.5")
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = coerce_settings(settings)
        self.id = "cohere"
        self.name = "Cohere"
        self.config = ClientConfig(
            provider=self.id,
            base_url=self.settings.base_url or COHERE_BASE_URL,
            api_key=self.settings.api_key,
            headers=self.settings.headers,
            timeout=self.settings.timeout,
            http_client=http_client,
        )

    def language_model(self, model_id: str) -> LanguageModel:
        return CohereLanguageModel(model_id, self.config)

    def embedding_model(self, model_id: str) -> EmbeddingModel:
        return CohereEmbeddingModel(model_id, self.config)

    def rerank_model(self, model_id: str) -> RerankModel:
        return CohereRerankModel(model_id, self.config)


def create_cohere(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> CohereProvider:
    return CohereProvider(settings, http_client=http_client)
