"""modelhub: one contract over many AI model vendors.

Example:
    from modelhub import ProviderRegistry, generate_image

    registry = ProviderRegistry()
    provider = registry.get("openai", {"api_key": "sk-..."})
    result = await generate_image(model=provider.image_model("dall-e-3"), prompt="a cat")
"""

from __future__ import annotations

from modelhub.core.exceptions import (
    AISDKError,
    APIError,
    AuthenticationError,
    ConfigurationError,
    ModelNotFoundError,
    ProviderCapabilityError,
    ProviderNotFoundError,
    RateLimitError,
)
from modelhub.infra.ai import (
    ProviderClient,
    embed,
    embed_many,
    generate_image,
    generate_speech,
    generate_text,
    generate_transcription,
    get_provider,
    get_provider_for_embedding,
    get_provider_for_image,
    get_provider_for_moderation,
    get_provider_for_rerank,
    get_provider_for_speech,
    get_provider_for_text,
    get_provider_for_transcription,
    moderate,
    rerank,
    stream_text,
)
from modelhub.infra.ai.capabilities import (
    Capability,
    ModelType,
    ProviderCapabilities,
    ProviderRegistry,
    get_provider_registry,
    list_providers,
    reset_provider_registry,
)
from modelhub.infra.ai.providers import AIProvider, ProviderSettings

__version__ = "0.1.0"

__all__ = [
    "AIProvider",
    "AISDKError",
    "APIError",
    "AuthenticationError",
    "Capability",
    "ConfigurationError",
    "ModelNotFoundError",
    "ModelType",
    "ProviderCapabilities",
    "ProviderCapabilityError",
    "ProviderClient",
    "ProviderNotFoundError",
    "ProviderRegistry",
    "ProviderSettings",
    "RateLimitError",
    "embed",
    "embed_many",
    "generate_image",
    "generate_speech",
    "generate_text",
    "generate_transcription",
    "get_provider",
    "get_provider_for_embedding",
    "get_provider_for_image",
    "get_provider_for_moderation",
    "get_provider_for_rerank",
    "get_provider_for_speech",
    "get_provider_for_text",
    "get_provider_for_transcription",
    "get_provider_registry",
    "list_providers",
    "moderate",
    "rerank",
    "reset_provider_registry",
    "stream_text",
]
