"""AI provider adapters.

Each adapter implements ``AIProvider`` for one vendor (or vendor family)
and exposes only the capability accessors the vendor supports.
"""

from modelhub.infra.ai.providers.anthropic_provider import AnthropicProvider
from modelhub.infra.ai.providers.azure_provider import AzureOpenAIProvider
from modelhub.infra.ai.providers.base import (
    AIProvider,
    ProviderSettings,
    coerce_settings,
)
from modelhub.infra.ai.providers.cohere_provider import CohereProvider
from modelhub.infra.ai.providers.google_provider import GoogleProvider
from modelhub.infra.ai.providers.ollama_provider import OllamaProvider
from modelhub.infra.ai.providers.openai_compatible import (
    COMPATIBLE_VENDORS,
    OpenAICompatibleProvider,
    create_compatible_vendor,
    create_openai_compatible,
)
from modelhub.infra.ai.providers.openai_provider import OpenAIProvider
from modelhub.infra.ai.providers.reasoning import get_reasoning_options
from modelhub.infra.ai.providers.tongyi_provider import TongyiProvider

__all__ = [
    "COMPATIBLE_VENDORS",
    "AIProvider",
    "AnthropicProvider",
    "AzureOpenAIProvider",
    "CohereProvider",
    "GoogleProvider",
    "OllamaProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
    "ProviderSettings",
    "TongyiProvider",
    "coerce_settings",
    "create_compatible_vendor",
    "create_openai_compatible",
    "get_reasoning_options",
]
