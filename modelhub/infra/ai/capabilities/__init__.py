"""AI Capabilities Layer.

- Capability: Enum of AI capabilities (language, embedding, speech, ...)
- ProviderCapabilities: The capability set of one provider
- ModelFeature: Per-model features (vision, tool calls, ...) for catalogs
- ProviderRegistry: Provider id -> adapter factory, with fallback on miss

Example:
    from modelhub.infra.ai.capabilities import Capability, get_provider_registry

    provider = get_provider_registry().get("siliconflow", {"api_key": "sk-..."})
    provider.capabilities.supports(Capability.RERANK)  # True
"""

from modelhub.infra.ai.capabilities.registry import (
    ProviderRegistry,
    ProviderRegistryEntry,
    get_provider_registry,
    list_providers,
    reset_provider_registry,
)
from modelhub.infra.ai.capabilities.types import (
    CAPABILITY_DESCRIPTIONS,
    MODEL_FEATURE_DESCRIPTIONS,
    Capability,
    CapabilityDescription,
    ModelFeature,
    ModelType,
    ProviderCapabilities,
    get_all_model_features,
    get_model_features_with_descriptions,
)

__all__ = [
    "CAPABILITY_DESCRIPTIONS",
    "MODEL_FEATURE_DESCRIPTIONS",
    "Capability",
    "CapabilityDescription",
    "ModelFeature",
    "ModelType",
    "ProviderCapabilities",
    "ProviderRegistry",
    "ProviderRegistryEntry",
    "get_all_model_features",
    "get_model_features_with_descriptions",
    "get_provider_registry",
    "list_providers",
    "reset_provider_registry",
]
