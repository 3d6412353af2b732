"""Model clients for the OpenAI wire format.

Chat and embeddings go through the ``openai`` SDK (``AsyncOpenAI`` or
``AsyncAzureOpenAI``) with ``max_retries=0``. Image, speech, transcription,
moderation and rerank are plain REST calls over httpx, which lets every
OpenAI-compatible vendor reuse them with only a different base URL.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any

from modelhub.infra.ai.providers.base import (
    EmbeddingModel,
    EmbeddingParams,
    EmbeddingResult,
    GeneratedImage,
    ImageGenerateParams,
    ImageGenerateResult,
    ImageModel,
    LanguageModel,
    LanguageModelCallParams,
    LanguageModelResult,
    ModerationModel,
    ModerationParams,
    ModerationResult,
    ModerationResultItem,
    RerankModel,
    RerankParams,
    RerankResult,
    RerankResultItem,
    SpeechGenerateParams,
    SpeechGenerateResult,
    SpeechModel,
    StreamPart,
    TranscriptionModel,
    TranscriptionParams,
    TranscriptionResult,
    TranscriptionSegment,
    Usage,
)
from modelhub.infra.ai.providers.http import (
    ClientConfig,
    post_for_bytes,
    post_json,
    post_multipart,
    sdk_timeout,
)

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# Transcription formats that come back as plain text instead of JSON.
TEXT_TRANSCRIPTION_FORMATS = frozenset({"text", "srt", "vtt"})


def openai_client_builder(
    config: ClientConfig,
    *,
    organization: str | None = None,
    project: str | None = None,
) -> Callable[[], AsyncOpenAI]:
    """Return a zero-argument builder for an ``AsyncOpenAI`` client."""

    def build() -> AsyncOpenAI:
        from openai import AsyncOpenAI

        kwargs: dict[str, Any] = {
            "api_key": config.api_key,
            "base_url": config.base_url,
            "organization": organization,
            "project": project,
            "default_headers": dict(config.headers) or None,
            "max_retries": 0,
            "timeout": sdk_timeout(config.timeout),
        }
        if config.http_client is not None:
            kwargs["http_client"] = config.http_client
        return AsyncOpenAI(**kwargs)

    return build


def map_openai_usage(usage: Any) -> Usage | None:
    """Convert an SDK ``CompletionUsage``/embedding usage to ``Usage``."""
    if usage is None:
        return None
    completion_details = getattr(usage, "completion_tokens_details", None)
    prompt_details = getattr(usage, "prompt_tokens_details", None)
    return Usage(
        input_tokens=getattr(usage, "prompt_tokens", None),
        output_tokens=getattr(usage, "completion_tokens", None),
        total_tokens=getattr(usage, "total_tokens", None),
        reasoning_tokens=getattr(completion_details, "reasoning_tokens", None),
        cached_input_tokens=getattr(prompt_details, "cached_tokens", None),
    )


# ──────────────────────────────────────────────────────────────
# SDK-backed models
# ──────────────────────────────────────────────────────────────


class OpenAIChatLanguageModel(LanguageModel):
    """Chat Completions API model.

    ``reasoning_content`` (DeepSeek, Qwen, Moonshot thinking models) is
    surfaced as ``reasoning`` when the vendor returns it.
    """

    def __init__(
        self,
        model_id: str,
        provider: str,
        client: Callable[[], AsyncOpenAI],
        *,
        include_stream_usage: bool = True,
    ) -> None:
        super().__init__(model_id, provider)
        self._client = client
        self.include_stream_usage = include_stream_usage

    def _request_args(self, params: LanguageModelCallParams) -> dict[str, Any]:
        args: dict[str, Any] = {
            "model": self.model_id,
            "messages": [m.model_dump() for m in params.messages],
        }
        if params.temperature is not None:
            args["temperature"] = params.temperature
        if params.max_tokens is not None:
            args["max_tokens"] = params.max_tokens
        if params.top_p is not None:
            args["top_p"] = params.top_p
        if params.stop:
            args["stop"] = params.stop
        if params.provider_options:
            args["extra_body"] = params.provider_options
        return args

    async def do_generate(self, params: LanguageModelCallParams) -> LanguageModelResult:
        logger.debug(
            f"{self.provider} chat completion request",
            extra={"provider": self.provider, "model": self.model_id},
        )
        response = await self._client().chat.completions.create(**self._request_args(params))
        choice = response.choices[0]
        return LanguageModelResult(
            text=choice.message.content or "",
            reasoning=getattr(choice.message, "reasoning_content", None),
            finish_reason=choice.finish_reason,
            usage=map_openai_usage(response.usage),
            model=response.model,
            response_id=response.id,
        )

    async def do_stream(self, params: LanguageModelCallParams) -> AsyncIterator[StreamPart]:
        args = self._request_args(params)
        args["stream"] = True
        if self.include_stream_usage:
            args["stream_options"] = {"include_usage": True}

        stream = await self._client().chat.completions.create(**args)
        finish_reason: str | None = None
        usage: Usage | None = None
        async with stream:
            async for chunk in stream:
                if getattr(chunk, "usage", None):
                    usage = map_openai_usage(chunk.usage)
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                reasoning = getattr(choice.delta, "reasoning_content", None)
                if reasoning:
                    yield StreamPart(type="reasoning-delta", text=reasoning)
                if choice.delta.content:
                    yield StreamPart(type="text-delta", text=choice.delta.content)
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        yield StreamPart(type="finish", finish_reason=finish_reason, usage=usage)


class OpenAIEmbeddingModel(EmbeddingModel):
    def __init__(self, model_id: str, provider: str, client: Callable[[], AsyncOpenAI]) -> None:
        super().__init__(model_id, provider)
        self._client = client

    async def do_embed(self, params: EmbeddingParams) -> EmbeddingResult:
        kwargs: dict[str, Any] = {"model": self.model_id, "input": params.values}
        if params.provider_options:
            kwargs["extra_body"] = params.provider_options
        response = await self._client().embeddings.create(**kwargs)
        ordered = sorted(response.data, key=lambda item: item.index)
        return EmbeddingResult(
            embeddings=[list(item.embedding) for item in ordered],
            usage=map_openai_usage(response.usage),
        )


# ──────────────────────────────────────────────────────────────
# REST models
# ──────────────────────────────────────────────────────────────


class OpenAIImageModel(ImageModel):
    """``POST /images/generations``."""

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_generate(self, params: ImageGenerateParams) -> ImageGenerateResult:
        body = {
            "model": self.model_id,
            "prompt": params.prompt,
            "n": params.n or 1,
            "size": params.size or "1024x1024",
            "quality": params.quality or "standard",
            "style": params.style or "vivid",
            "response_format": params.response_format or "url",
            **params.provider_options,
        }
        data = await post_json(self.config, "/images/generations", body, operation="image")
        return ImageGenerateResult(
            images=[
                GeneratedImage(
                    url=item.get("url"),
                    b64_json=item.get("b64_json"),
                    revised_prompt=item.get("revised_prompt"),
                )
                for item in data.get("data") or []
            ],
        )


class OpenAISpeechModel(SpeechModel):
    """``POST /audio/speech``; the response body is the audio file."""

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_generate(self, params: SpeechGenerateParams) -> SpeechGenerateResult:
        audio_format = params.response_format or "mp3"
        body = {
            "model": self.model_id,
            "input": params.text,
            "voice": params.voice or "alloy",
            "speed": params.speed if params.speed is not None else 1.0,
            "response_format": audio_format,
            **params.provider_options,
        }
        audio = await post_for_bytes(self.config, "/audio/speech", body, operation="speech")
        return SpeechGenerateResult(audio=audio, format=audio_format)


class OpenAITranscriptionModel(TranscriptionModel):
    """``POST /audio/transcriptions`` as multipart form data."""

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_transcribe(self, params: TranscriptionParams) -> TranscriptionResult:
        form: dict[str, Any] = {"model": self.model_id}
        if params.language:
            form["language"] = params.language
        if params.prompt:
            form["prompt"] = params.prompt
        if params.response_format:
            form["response_format"] = params.response_format
        if params.temperature is not None:
            form["temperature"] = str(params.temperature)
        form.update({k: str(v) for k, v in params.provider_options.items()})

        as_text = params.response_format in TEXT_TRANSCRIPTION_FORMATS
        data = await post_multipart(
            self.config,
            "/audio/transcriptions",
            data=form,
            files={"file": (params.filename, params.audio, params.media_type)},
            operation="transcription",
            expect_json=not as_text,
        )
        if as_text:
            return TranscriptionResult(text=data)

        segments = data.get("segments")
        return TranscriptionResult(
            text=data.get("text", ""),
            language=data.get("language"),
            duration=data.get("duration"),
            segments=[
                TranscriptionSegment(
                    id=seg.get("id", i),
                    start=seg["start"],
                    end=seg["end"],
                    text=seg["text"],
                )
                for i, seg in enumerate(segments)
            ]
            if segments
            else None,
        )


class OpenAIModerationModel(ModerationModel):
    """``POST /moderations``."""

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_moderate(self, params: ModerationParams) -> ModerationResult:
        body = {"model": self.model_id, "input": params.input}
        data = await post_json(self.config, "/moderations", body, operation="moderation")
        return ModerationResult(
            results=[
                ModerationResultItem(
                    flagged=bool(item.get("flagged")),
                    categories=item.get("categories") or {},
                    category_scores=item.get("category_scores") or {},
                )
                for item in data.get("results") or []
            ],
            model=data.get("model") or self.model_id,
        )


def _document_text(document: Any) -> str | None:
    if isinstance(document, dict):
        return document.get("text")
    return document


class OpenAIRerankModel(RerankModel):
    """``POST /rerank`` in the Jina/SiliconFlow layout used by OpenAI-compatible hosts.

    Accepts either ``results`` or ``rankings`` in the response, and either
    ``relevance_score`` or ``score`` per item.
    """

    def __init__(self, model_id: str, config: ClientConfig) -> None:
        super().__init__(model_id, config.provider)
        self.config = config

    async def do_rerank(self, params: RerankParams) -> RerankResult:
        body = {
            "model": self.model_id,
            "query": params.query,
            "documents": params.documents,
            "top_n": params.top_n or len(params.documents),
            "return_documents": params.return_documents or False,
            **params.provider_options,
        }
        data = await post_json(self.config, "/rerank", body, operation="rerank")
        items = data.get("results") or data.get("rankings") or []
        results = []
        for item in items:
            score = item.get("relevance_score")
            if score is None:
                score = item.get("score")
            results.append(
                RerankResultItem(
                    index=item["index"],
                    relevance_score=score if score is not None else 0.0,
                    document=_document_text(item.get("document")),
                ),
            )
        usage = data.get("usage")
        return RerankResult(
            results=results,
            model=data.get("model") or self.model_id,
            usage=Usage(total_tokens=usage.get("total_tokens")) if usage else None,
        )
