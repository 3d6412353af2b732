"""Built-in provider registrations.

Registers a factory for every vendor adapter shipped with modelhub. Called by
``ProviderRegistry`` on construction unless ``register_defaults=False``.

Usage:
    registry = ProviderRegistry(register_defaults=False)
    register_builtin_providers(registry)
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from modelhub.infra.ai.providers.anthropic_provider import create_anthropic, create_minimax
from modelhub.infra.ai.providers.azure_provider import create_azure
from modelhub.infra.ai.providers.cohere_provider import create_cohere
from modelhub.infra.ai.providers.google_provider import create_google
from modelhub.infra.ai.providers.ollama_provider import create_ollama
from modelhub.infra.ai.providers.openai_compatible import (
    COMPATIBLE_VENDORS,
    create_compatible_vendor,
    create_openai_compatible,
)
from modelhub.infra.ai.providers.openai_provider import create_openai
from modelhub.infra.ai.providers.tongyi_provider import create_tongyi

if TYPE_CHECKING:
    from modelhub.infra.ai.capabilities.registry import ProviderFactory, ProviderRegistry

logger = logging.getLogger(__name__)


def _compatible(vendor_id: str) -> tuple[str, ProviderFactory, str]:
    vendor = COMPATIBLE_VENDORS[vendor_id]
    return vendor.id, partial(create_compatible_vendor, vendor.id), vendor.description


BUILTIN_PROVIDERS: tuple[tuple[str, ProviderFactory, str], ...] = (
    ("openai", create_openai, "OpenAI GPT models"),
    _compatible("deepseek"),
    _compatible("zhipuai"),
    _compatible("moonshot"),
    _compatible("siliconflow"),
    ("tongyi", create_tongyi, "Alibaba Tongyi Qianwen models on DashScope"),
    _compatible("volcengine"),
    _compatible("hunyuan"),
    _compatible("wenxin"),
    ("ollama", create_ollama, "Local models served by Ollama"),
    ("minimax", create_minimax, "MiniMax models via the Anthropic-compatible API"),
    ("anthropic", create_anthropic, "Anthropic Claude models"),
    ("google", create_google, "Google Gemini models"),
    ("cohere", create_cohere, "Cohere Command, Embed and Rerank models"),
    _compatible("gitee_ai"),
    _compatible("x"),
    ("custom", create_openai_compatible, "custom OpenAI-compatible API"),
    ("azure", create_azure, "Azure OpenAI deployments"),
    _compatible("openrouter"),
    _compatible("spark"),
)


def register_builtin_providers(registry: ProviderRegistry) -> None:
    """Register every built-in vendor on ``registry``.

    Args:
        registry: Registry to populate; existing entries with the same ids
            are replaced.
    """
    for provider_id, factory, description in BUILTIN_PROVIDERS:
        registry.register(provider_id, factory, description)

    logger.info(
        f"Registered {len(BUILTIN_PROVIDERS)} built-in providers",
        extra={"providers": [p[0] for p in BUILTIN_PROVIDERS]},
    )


def get_provider_info() -> dict[str, dict[str, Any]]:
    """Describe built-in providers and the capabilities each adapter exposes.

    Adapters are built with empty settings, which performs no I/O.

    Returns:
        Mapping of provider id to ``{name, description, capabilities}``.
    """
    info: dict[str, dict[str, Any]] = {}
    for provider_id, factory, description in BUILTIN_PROVIDERS:
        provider = factory(None)
        info[provider_id] = {
            "name": provider.name,
            "description": description,
            "capabilities": [cap.value for cap in provider.capabilities.supported],
        }
    return info
