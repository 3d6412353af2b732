"""AI Infrastructure Package.

Quick Start:
    from modelhub.infra.ai import generate_text, get_provider

    client = get_provider("openai", {"api_key": "sk-..."})
    result = await generate_text(model=client("gpt-4o-mini"), prompt="Hello")

Architecture:
    ProviderRegistry (id -> adapter factory, fallback on miss)
        ├── Provider adapters (OpenAI, Anthropic, Gemini, Ollama, ...)
        │       └── Model clients (language, embedding, image, ...)
        ├── Invocation functions (generate_image, rerank, ...)
        └── Helpers (get_reasoning_options, estimate_token_usage)
"""

from __future__ import annotations

from modelhub.infra.ai.client import (
    ProviderClient,
    get_provider,
    get_provider_for_embedding,
    get_provider_for_image,
    get_provider_for_moderation,
    get_provider_for_rerank,
    get_provider_for_speech,
    get_provider_for_text,
    get_provider_for_transcription,
)
from modelhub.infra.ai.generation import (
    embed,
    embed_many,
    generate_image,
    generate_speech,
    generate_text,
    generate_text_with_usage,
    generate_transcription,
    moderate,
    rerank,
    stream_text,
    stream_text_with_usage,
)
from modelhub.infra.ai.providers.reasoning import get_reasoning_options
from modelhub.infra.ai.usage import estimate_token_usage

__all__ = [
    "ProviderClient",
    "embed",
    "embed_many",
    "estimate_token_usage",
    "generate_image",
    "generate_speech",
    "generate_text",
    "generate_text_with_usage",
    "generate_transcription",
    "get_provider",
    "get_provider_for_embedding",
    "get_provider_for_image",
    "get_provider_for_moderation",
    "get_provider_for_rerank",
    "get_provider_for_speech",
    "get_provider_for_text",
    "get_provider_for_transcription",
    "get_reasoning_options",
    "moderate",
    "rerank",
    "stream_text",
    "stream_text_with_usage",
]
