"""Provider registry: resolves provider ids to live adapters.

The registry maps a provider id to a factory that builds an ``AIProvider``
from ``ProviderSettings``. Lookups never fail: an id with no registration
resolves to the generic OpenAI-compatible adapter, using the id as both the
provider id and display name, and a warning is logged.

Usage:
    registry = ProviderRegistry()  # built-in vendors registered

    provider = registry.get("deepseek", {"api_key": "sk-..."})
    provider = registry.get("my-gateway", {"base_url": "https://llm.internal/v1"})

    registry.register("acme", AcmeProvider, "Acme in-house models")
    registry.unregister("acme")

Process-wide default:
    get_provider_registry() returns a lazily created shared instance for
    code that does not pass a registry explicitly; tests reset it with
    reset_provider_registry().
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from modelhub.infra.ai.providers.openai_compatible import create_openai_compatible

if TYPE_CHECKING:
    from modelhub.infra.ai.providers.base import AIProvider, SettingsInput

logger = logging.getLogger(__name__)

ProviderFactory = Callable[["SettingsInput"], "AIProvider"]


class FallbackFactory(Protocol):
    """Builds the adapter for an id that has no registration."""

    def __call__(
        self,
        settings: SettingsInput = None,
        *,
        provider_id: str | None = None,
        name: str | None = None,
    ) -> AIProvider: ...


@dataclass(frozen=True)
class ProviderRegistryEntry:
    """A registered provider factory.

    Attributes:
        id: Stable provider id (e.g. ``openai``, ``gitee_ai``).
        factory: Callable building the adapter from settings.
        description: Human-readable description for listings.
    """

    id: str
    factory: ProviderFactory
    description: str = ""


class ProviderRegistry:
    """Keyed store of provider factories with fallback-on-miss lookup.

    Thread Safety:
        Registration is expected at startup; afterwards the map is read-mostly
        and no locking is done.

    Example:
        registry = ProviderRegistry(register_defaults=False)
        registry.register("openai", OpenAIProvider, "OpenAI GPT models")

        registry.has("openai")     # True
        registry.get("openai").id  # "openai"
        registry.get("unknown").id # "unknown" (generic adapter)
    """

    def __init__(
        self,
        *,
        register_defaults: bool = True,
        fallback_factory: FallbackFactory | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            register_defaults: Register the built-in vendors.
            fallback_factory: Builder for unknown ids; defaults to the generic
                OpenAI-compatible adapter.
        """
        self._entries: dict[str, ProviderRegistryEntry] = {}
        self._fallback: FallbackFactory = fallback_factory or create_openai_compatible

        if register_defaults:
            from modelhub.infra.ai.capabilities.builtin_providers import (
                register_builtin_providers,
            )

            register_builtin_providers(self)

    def register(self, provider_id: str, factory: ProviderFactory, description: str = "") -> None:
        """Insert or replace a provider factory.

        Args:
            provider_id: Provider id.
            factory: Callable taking settings and returning an adapter.
            description: Human-readable description.
        """
        if provider_id in self._entries:
            logger.debug(
                f"Provider '{provider_id}' already registered, replacing factory",
                extra={"provider_id": provider_id},
            )
        self._entries[provider_id] = ProviderRegistryEntry(provider_id, factory, description)
        logger.debug(
            f"Registered provider: {provider_id}",
            extra={"provider_id": provider_id, "description": description},
        )

    def unregister(self, provider_id: str) -> bool:
        """Remove a provider.

        Returns:
            True if the provider was registered.
        """
        if self._entries.pop(provider_id, None) is None:
            return False
        logger.debug(f"Unregistered provider: {provider_id}", extra={"provider_id": provider_id})
        return True

    def get(self, provider_id: str, settings: SettingsInput = None) -> AIProvider:
        """Build the adapter for ``provider_id``.

        Unknown ids resolve to the generic OpenAI-compatible adapter with
        ``provider_id`` as id and name; this is logged as a warning, not
        raised. Adapters validate nothing at construction, so configuration
        problems surface on the first model call.

        Args:
            provider_id: Provider id.
            settings: ProviderSettings, a mapping of the same fields, or None.

        Returns:
            A usable adapter; never None.
        """
        entry = self._entries.get(provider_id)
        if entry is None:
            logger.warning(
                f"Provider '{provider_id}' not registered, using OpenAI-compatible adapter",
                extra={"provider_id": provider_id},
            )
            return self._fallback(settings, provider_id=provider_id, name=provider_id)
        return entry.factory(settings)

    def has(self, provider_id: str) -> bool:
        return provider_id in self._entries

    def get_entry(self, provider_id: str) -> ProviderRegistryEntry | None:
        return self._entries.get(provider_id)

    def list(self) -> list[dict[str, str]]:
        """List registrations in registration order as ``{id, description}``."""
        return [
            {"id": entry.id, "description": entry.description}
            for entry in self._entries.values()
        ]

    def ids(self) -> list[str]:
        return [*self._entries]

    def clear(self) -> None:
        """Remove every registration (useful for testing)."""
        self._entries.clear()

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ProviderRegistry(providers={self.ids()!r})"


# Global registry instance
_registry: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """Get the process-wide registry, creating it with built-ins on first use.

    Returns:
        The shared ProviderRegistry instance.
    """
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
        logger.debug("Created default provider registry")
    return _registry


def reset_provider_registry() -> None:
    """Drop the process-wide registry (useful for testing)."""
    global _registry
    _registry = None


def list_providers(registry: ProviderRegistry | None = None) -> list[dict[str, Any]]:
    """List providers of ``registry`` or of the process-wide default."""
    if registry is None:
        registry = get_provider_registry()
    return registry.list()
