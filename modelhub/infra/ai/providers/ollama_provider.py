"""Ollama provider adapter for local and self-hosted models.

Uses the native Ollama API over httpx: ``/chat`` (streamed as NDJSON when
``stream`` is true) and ``/embed``. No API key is needed; one is sent as a
bearer token when configured, for deployments behind an authenticating proxy.
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
    SettingsInput,
    StreamPart,
    Usage,
    coerce_settings,
)
from modelhub.infra.ai.providers.http import (
    ClientConfig,
    iter_ndjson,
    post_json,
    stream_lines,
)

logger = logging.getLogger(__name__)

OLLAMA_BASE_URL = "http://localhost:11434/api"


def _map_usage(data: dict[str, Any]) -> Usage | None:
    prompt = data.get("prompt_eval_count")
    completion = data.get("eval_count")
    if prompt is None and completion is None:
        return None
    return Usage(
        input_tokens=prompt,
        output_tokens=completion,
        total_tokens=(prompt or 0) + (completion or 0),
    )


class OllamaLanguageModel(LanguageModel):
    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    def _request_body(self, params: LanguageModelCallParams, *, stream: bool) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if params.temperature is not None:
            options["temperature"] = params.temperature
        if params.max_tokens is not None:
            options["num_predict"] = params.max_tokens
        if params.top_p is not None:
            options["top_p"] = params.top_p
        if params.stop:
            options["stop"] = params.stop
        body: dict[str, Any] = {
            "model": self.model_id,
            "messages": [m.model_dump() for m in params.messages],
            "stream": stream,
        }
        if options:
            body["options"] = options
        body.update(params.provider_options)
        return body

    async def do_generate(self, params: LanguageModelCallParams) -> LanguageModelResult:
        data = await post_json(
            self.config,
            "/chat",
            self._request_body(params, stream=False),
            operation="chat",
        )
        message = data.get("message") or {}
        return LanguageModelResult(
            text=message.get("content", ""),
            reasoning=message.get("thinking") or None,
            finish_reason=data.get("done_reason"),
            usage=_map_usage(data),
            model=data.get("model") or self.model_id,
        )

    async def do_stream(self, params: LanguageModelCallParams) -> AsyncIterator[StreamPart]:
        lines = stream_lines(
            self.config,
            "/chat",
            self._request_body(params, stream=True),
            operation="chat",
        )
        finish_reason: str | None = None
        usage: Usage | None = None
        async with aclosing(iter_ndjson(lines)) as chunks:
            async for chunk in chunks:
                message = chunk.get("message") or {}
                if message.get("thinking"):
                    yield StreamPart(type="reasoning-delta", text=message["thinking"])
                if message.get("content"):
                    yield StreamPart(type="text-delta", text=message["content"])
                if chunk.get("done"):
                    finish_reason = chunk.get("done_reason")
                    usage = _map_usage(chunk)
        yield StreamPart(type="finish", finish_reason=finish_reason, usage=usage)


class OllamaEmbeddingModel(EmbeddingModel):
    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_embed(self, params: EmbeddingParams) -> EmbeddingResult:
        body = {"model": self.model_id, "input": params.values, **params.provider_options}
        data = await post_json(self.config, "/embed", body, operation="embed")
        prompt = data.get("prompt_eval_count")
        return EmbeddingResult(
            embeddings=data.get("embeddings") or [],
            usage=Usage(input_tokens=prompt, total_tokens=prompt) if prompt is not None else None,
        )


class OllamaProvider(AIProvider):
    """Ollama adapter (language, embedding).

    Usage:
        provider = OllamaProvider({"base_url": "http://gpu-box:11434/api"})
        model = provider.language_model("llama3.1")
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = coerce_settings(settings)
        self.id = "ollama"
        self.name = "Ollama"
        self.config = ClientConfig(
            provider=self.id,
            base_url=self.settings.base_url or OLLAMA_BASE_URL,
            api_key=self.settings.api_key,
            headers=self.settings.headers,
            timeout=self.settings.timeout,
            http_client=http_client,
        )

    def language_model(self, model_id: str) -> LanguageModel:
        return OllamaLanguageModel(model_id, self.config)

    def embedding_model(self, model_id: str) -> EmbeddingModel:
        return OllamaEmbeddingModel(model_id, self.config)


def create_ollama(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> OllamaProvider:
    return OllamaProvider(settings, http_client=http_client)
