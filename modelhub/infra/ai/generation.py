"""Capability invocation functions.

One uniform call surface per capability, independent of which adapter
produced the model. Each function builds the request model from its keyword
arguments, calls the model exactly once and returns the result unchanged.
Errors from the model propagate as raised. The ``*_with_usage`` variants are
the one exception: they fill in estimated token usage when the vendor
reports none.

Usage:
    provider = get_provider_registry().get("openai", {"api_key": "sk-..."})

    result = await generate_image(model=provider.image_model("dall-e-3"), prompt="a cat")
    ranked = await rerank(
        model=provider.rerank_model("rerank-1"),
        query="capital of France",
        documents=["Paris", "Berlin"],
        top_n=1,
    )
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import TYPE_CHECKING, Any

from modelhub.infra.ai.providers.base import (
    ChatMessage,
    EmbeddingParams,
    ImageGenerateParams,
    ImageResponseFormat,
    LanguageModelCallParams,
    ModerationParams,
    RerankParams,
    SpeechGenerateParams,
    TranscriptionParams,
)
from modelhub.infra.ai.providers.reasoning import get_reasoning_options
from modelhub.infra.ai.usage import (
    ensure_usage,
    format_messages_for_token_count,
    has_usage,
)

if TYPE_CHECKING:
    from modelhub.infra.ai.providers.base import (
        EmbeddingModel,
        EmbeddingResult,
        ImageGenerateResult,
        ImageModel,
        LanguageModel,
        LanguageModelResult,
        ModerationModel,
        ModerationResult,
        RerankModel,
        RerankResult,
        SpeechGenerateResult,
        SpeechModel,
        StreamPart,
        TranscriptionModel,
        TranscriptionResult,
    )

MessageInput = ChatMessage | dict[str, str]


def _build_messages(
    prompt: str | None,
    messages: Sequence[MessageInput] | None,
    system: str | None,
) -> list[ChatMessage]:
    if prompt is None and not messages:
        msg = "Either 'prompt' or 'messages' is required"
        raise ValueError(msg)
    result: list[ChatMessage] = []
    if system:
        result.append(ChatMessage(role="system", content=system))
    result.extend(ChatMessage.model_validate(m) for m in messages or [])
    if prompt is not None:
        result.append(ChatMessage(role="user", content=prompt))
    return result


def _language_params(
    model: LanguageModel,
    prompt: str | None,
    messages: Sequence[MessageInput] | None,
    system: str | None,
    temperature: float | None,
    max_tokens: int | None,
    top_p: float | None,
    stop: list[str] | None,
    thinking: bool | None,
    provider_options: dict[str, Any] | None,
) -> LanguageModelCallParams:
    options = dict(provider_options or {})
    if thinking is not None:
        # Explicit provider options win over the thinking switch
        options = {**get_reasoning_options(model.provider, thinking=thinking), **options}
    return LanguageModelCallParams(
        messages=_build_messages(prompt, messages, system),
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=top_p,
        stop=stop,
        provider_options=options,
    )


async def generate_text(
    *,
    model: LanguageModel,
    prompt: str | None = None,
    messages: Sequence[MessageInput] | None = None,
    system: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    top_p: float | None = None,
    stop: list[str] | None = None,
    thinking: bool | None = None,
    provider_options: dict[str, Any] | None = None,
) -> LanguageModelResult:
    """Generate a completion from a prompt and/or chat messages.

    ``system`` is prepended and ``prompt`` appended as a user turn.
    ``thinking`` switches vendor reasoning on or off through
    ``get_reasoning_options``; None leaves the vendor default.

    Raises:
        ValueError: If neither ``prompt`` nor ``messages`` is given.
    """
    params = _language_params(
        model, prompt, messages, system, temperature, max_tokens, top_p, stop,
        thinking, provider_options,
    )
    return await model.do_generate(params)


def stream_text(
    *,
    model: LanguageModel,
    prompt: str | None = None,
    messages: Sequence[MessageInput] | None = None,
    system: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    top_p: float | None = None,
    stop: list[str] | None = None,
    thinking: bool | None = None,
    provider_options: dict[str, Any] | None = None,
) -> AsyncIterator[StreamPart]:
    """Stream a completion; iterate the result with ``async for``.

    The stream holds an open HTTP response until it is exhausted or closed.
    A consumer that may stop early should close it deterministically:

        async with contextlib.aclosing(stream_text(model=m, prompt="hi")) as parts:
            async for part in parts:
                if part.type == "text-delta":
                    break
    """
    params = _language_params(
        model, prompt, messages, system, temperature, max_tokens, top_p, stop,
        thinking, provider_options,
    )
    return model.do_stream(params)


async def generate_text_with_usage(
    *,
    model: LanguageModel,
    prompt: str | None = None,
    messages: Sequence[MessageInput] | None = None,
    system: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    top_p: float | None = None,
    stop: list[str] | None = None,
    thinking: bool | None = None,
    provider_options: dict[str, Any] | None = None,
) -> LanguageModelResult:
    """``generate_text`` that always carries usage.

    When the vendor reports no usage, or a zero total, the result gets an
    estimate from the request messages and the response text.
    """
    params = _language_params(
        model, prompt, messages, system, temperature, max_tokens, top_p, stop,
        thinking, provider_options,
    )
    result = await model.do_generate(params)
    if has_usage(result.usage):
        return result
    usage = ensure_usage(
        result.usage,
        input_text=format_messages_for_token_count(params.messages),
        output_text=result.text,
        provider=model.provider,
    )
    return result.model_copy(update={"usage": usage})


def stream_text_with_usage(
    *,
    model: LanguageModel,
    prompt: str | None = None,
    messages: Sequence[MessageInput] | None = None,
    system: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    top_p: float | None = None,
    stop: list[str] | None = None,
    thinking: bool | None = None,
    provider_options: dict[str, Any] | None = None,
) -> AsyncIterator[StreamPart]:
    """``stream_text`` whose ``finish`` part always carries usage.

    The estimate counts the streamed text deltas, not the reasoning deltas.
    """
    params = _language_params(
        model, prompt, messages, system, temperature, max_tokens, top_p, stop,
        thinking, provider_options,
    )
    return _with_estimated_usage(
        model.do_stream(params),
        input_text=format_messages_for_token_count(params.messages),
        provider=model.provider,
    )


async def _with_estimated_usage(
    stream: AsyncIterator[StreamPart],
    *,
    input_text: str,
    provider: str,
) -> AsyncIterator[StreamPart]:
    text_parts: list[str] = []
    async with aclosing(stream) as parts:
        async for part in parts:
            if part.type == "text-delta" and part.text:
                text_parts.append(part.text)
            elif part.type == "finish" and not has_usage(part.usage):
                usage = ensure_usage(
                    part.usage,
                    input_text=input_text,
                    output_text="".join(text_parts),
                    provider=provider,
                )
                part = part.model_copy(update={"usage": usage})
            yield part


async def embed(
    *,
    model: EmbeddingModel,
    value: str,
    provider_options: dict[str, Any] | None = None,
) -> list[float]:
    """Embed a single value and return its vector."""
    result = await model.do_embed(
        EmbeddingParams(values=[value], provider_options=provider_options or {}),
    )
    return result.embeddings[0]


async def embed_many(
    *,
    model: EmbeddingModel,
    values: list[str],
    provider_options: dict[str, Any] | None = None,
) -> EmbeddingResult:
    return await model.do_embed(
        EmbeddingParams(values=values, provider_options=provider_options or {}),
    )


async def generate_image(
    *,
    model: ImageModel,
    prompt: str,
    n: int | None = None,
    size: str | None = None,
    quality: str | None = None,
    style: str | None = None,
    response_format: ImageResponseFormat | None = None,
    provider_options: dict[str, Any] | None = None,
) -> ImageGenerateResult:
    return await model.do_generate(
        ImageGenerateParams(
            prompt=prompt,
            n=n,
            size=size,
            quality=quality,
            style=style,
            response_format=response_format,
            provider_options=provider_options or {},
        ),
    )


async def generate_speech(
    *,
    model: SpeechModel,
    text: str,
    voice: str | None = None,
    speed: float | None = None,
    response_format: str | None = None,
    provider_options: dict[str, Any] | None = None,
) -> SpeechGenerateResult:
    return await model.do_generate(
        SpeechGenerateParams(
            text=text,
            voice=voice,
            speed=speed,
            response_format=response_format,
            provider_options=provider_options or {},
        ),
    )


async def generate_transcription(
    *,
    model: TranscriptionModel,
    audio: bytes,
    language: str | None = None,
    prompt: str | None = None,
    response_format: str | None = None,
    temperature: float | None = None,
    filename: str = "audio.mp3",
    media_type: str = "audio/mpeg",
    provider_options: dict[str, Any] | None = None,
) -> TranscriptionResult:
    return await model.do_transcribe(
        TranscriptionParams(
            audio=audio,
            language=language,
            prompt=prompt,
            response_format=response_format,
            temperature=temperature,
            filename=filename,
            media_type=media_type,
            provider_options=provider_options or {},
        ),
    )


async def moderate(*, model: ModerationModel, input: str | list[str]) -> ModerationResult:  # noqa: A002
    return await model.do_moderate(ModerationParams(input=input))


async def rerank(
    *,
    model: RerankModel,
    query: str,
    documents: list[str],
    top_n: int | None = None,
) -> RerankResult:
    """Rerank documents by relevance to ``query``.

    Documents are never echoed back through this call; ``return_documents``
    is always forwarded unset.
    """
    return await model.do_rerank(
        RerankParams(query=query, documents=documents, top_n=top_n, return_documents=None),
    )
