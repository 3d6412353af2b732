"""Google Gemini provider adapter.

Talks to the Generative Language REST API over httpx with the key in the
``x-goog-api-key`` header:
- ``models/{id}:generateContent`` and ``:streamGenerateContent?alt=sse``
- ``models/{id}:batchEmbedContents``
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
    iter_sse_json,
    post_json,
    stream_lines,
)

logger = logging.getLogger(__name__)

GOOGLE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _model_path(model_id: str) -> str:
    return model_id if model_id.startswith("models/") else f"models/{model_id}"


def _map_usage(metadata: dict[str, Any] | None) -> Usage | None:
    if not metadata:
        return None
    return Usage(
        input_tokens=metadata.get("promptTokenCount"),
        output_tokens=metadata.get("candidatesTokenCount"),
        total_tokens=metadata.get("totalTokenCount"),
        reasoning_tokens=metadata.get("thoughtsTokenCount"),
        cached_input_tokens=metadata.get("cachedContentTokenCount"),
    )


def _split_parts(candidate: dict[str, Any]) -> tuple[str, str]:
    """Return (text, thoughts) from a candidate's content parts."""
    text: list[str] = []
    thoughts: list[str] = []
    for part in (candidate.get("content") or {}).get("parts") or []:
        if "text" not in part:
            continue
        (thoughts if part.get("thought") else text).append(part["text"])
    return "".join(text), "".join(thoughts)


class GeminiLanguageModel(LanguageModel):
    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    def _request_body(self, params: LanguageModelCallParams) -> dict[str, Any]:
        system = [m.content for m in params.messages if m.role == "system"]
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == "assistant" else "user",
                    "parts": [{"text": m.content}],
                }
                for m in params.messages
                if m.role != "system"
            ],
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": "\n\n".join(system)}]}

        generation_config: dict[str, Any] = {}
        if params.temperature is not None:
            generation_config["temperature"] = params.temperature
        if params.max_tokens is not None:
            generation_config["maxOutputTokens"] = params.max_tokens
        if params.top_p is not None:
            generation_config["topP"] = params.top_p
        if params.stop:
            generation_config["stopSequences"] = params.stop

        # generationConfig from provider options merges into the mapped one
        options = dict(params.provider_options)
        generation_config.update(options.pop("generationConfig", None) or {})
        if generation_config:
            body["generationConfig"] = generation_config
        body.update(options)
        return body

    async def do_generate(self, params: LanguageModelCallParams) -> LanguageModelResult:
        data = await post_json(
            self.config,
            f"/{_model_path(self.model_id)}:generateContent",
            self._request_body(params),
            operation="generate",
        )
        candidates = data.get("candidates") or [{}]
        text, thoughts = _split_parts(candidates[0])
        return LanguageModelResult(
            text=text,
            reasoning=thoughts or None,
            finish_reason=candidates[0].get("finishReason"),
            usage=_map_usage(data.get("usageMetadata")),
            model=data.get("modelVersion") or self.model_id,
            response_id=data.get("responseId"),
        )

    async def do_stream(self, params: LanguageModelCallParams) -> AsyncIterator[StreamPart]:
        lines = stream_lines(
            self.config,
            f"/{_model_path(self.model_id)}:streamGenerateContent?alt=sse",
            self._request_body(params),
            operation="generate",
        )
        finish_reason: str | None = None
        usage: Usage | None = None
        async with aclosing(iter_sse_json(lines)) as chunks:
            async for chunk in chunks:
                if chunk.get("usageMetadata"):
                    usage = _map_usage(chunk["usageMetadata"])
                for candidate in chunk.get("candidates") or []:
                    text, thoughts = _split_parts(candidate)
                    if thoughts:
                        yield StreamPart(type="reasoning-delta", text=thoughts)
                    if text:
                        yield StreamPart(type="text-delta", text=text)
                    if candidate.get("finishReason"):
                        finish_reason = candidate["finishReason"]
        yield StreamPart(type="finish", finish_reason=finish_reason, usage=usage)


class GeminiEmbeddingModel(EmbeddingModel):
    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_embed(self, params: EmbeddingParams) -> EmbeddingResult:
        model = _model_path(self.model_id)
        body = {
            "requests": [
                {"model": model, "content": {"parts": [{"text": value}]}, **params.provider_options}
                for value in params.values
            ],
        }
        data = await post_json(self.config, f"/{model}:batchEmbedContents", body, operation="embed")
        return EmbeddingResult(
            embeddings=[item["values"] for item in data.get("embeddings") or []],
        )


class GoogleProvider(AIProvider):
    """Google Gemini adapter (language, embedding).

    Usage:
        provider = GoogleProvider({"api_key": "..."})
        model = provider.language_model("gemini-2.0-flash")
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = coerce_settings(settings)
        self.id = "google"
        self.name = "Google Gemini"
        self.config = ClientConfig(
            provider=self.id,
            base_url=self.settings.base_url or GOOGLE_BASE_URL,
            api_key=self.settings.api_key,
            headers=self.settings.headers,
            timeout=self.settings.timeout,
            http_client=http_client,
            auth_header="x-goog-api-key",
            auth_scheme=None,
        )

    def language_model(self, model_id: str) -> LanguageModel:
        return GeminiLanguageModel(model_id, self.config)

    def embedding_model(self, model_id: str) -> EmbeddingModel:
        return GeminiEmbeddingModel(model_id, self.config)


def create_google(
    settings: SettingsInput = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> GoogleProvider:
    return GoogleProvider(settings, http_client=http_client)
