"""Capability-checked access to providers.

``ProviderClient`` wraps an adapter so that asking for a missing capability
raises ``ProviderCapabilityError`` instead of failing on a ``None`` accessor.
Calling the client with a model id picks the model kind from the id.

Usage:
    client = get_provider("siliconflow", {"api_key": "sk-..."})

    client("Qwen/Qwen2.5-7B-Instruct")   # language model
    client("BAAI/bge-m3-embedding")      # embedding model
    client("BAAI/bge-reranker-v2-m3")    # rerank model
    client.speech("FunAudioLLM/CosyVoice2-0.5B")
    client.moderation("x")               # raises ProviderCapabilityError

    text = get_provider_for_text("deepseek")("deepseek-chat")
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from modelhub.core.exceptions import ProviderCapabilityError
from modelhub.infra.ai.capabilities.registry import ProviderRegistry, get_provider_registry
from modelhub.infra.ai.capabilities.types import Capability, ProviderCapabilities

if TYPE_CHECKING:
    from modelhub.infra.ai.providers.base import (
        AIProvider,
        EmbeddingModel,
        ImageModel,
        LanguageModel,
        ModerationModel,
        RerankModel,
        SettingsInput,
        SpeechModel,
        TranscriptionModel,
    )


class ProviderClient:
    """Adapter wrapper that enforces capability support.

    Attributes:
        provider: The wrapped adapter.
    """

    def __init__(self, provider: AIProvider) -> None:
        self.provider = provider

    @property
    def id(self) -> str:
        return self.provider.id

    @property
    def name(self) -> str:
        return self.provider.name

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.provider.capabilities

    def supports(self, capability: Capability | str) -> bool:
        return getattr(self.provider, Capability(capability).accessor, None) is not None

    def _accessor(self, capability: Capability) -> Callable[[str], Any]:
        accessor = getattr(self.provider, capability.accessor, None)
        if accessor is None:
            raise ProviderCapabilityError(self.provider.id, capability.value)
        return accessor

    def __call__(self, model_id: str) -> Any:
        """Bind ``model_id`` to the model kind its name suggests.

        Ids containing ``rerank`` go to the rerank model and ids containing
        ``embed`` to the embedding model, when the provider supports them;
        everything else is a language model.
        """
        lowered = model_id.lower()
        if "rerank" in lowered and self.supports(Capability.RERANK):
            return self.rerank(model_id)
        if "embed" in lowered and self.supports(Capability.EMBEDDING):
            return self.embedding(model_id)
        return self.language(model_id)

    def language(self, model_id: str) -> LanguageModel:
        return self.provider.language_model(model_id)

    def embedding(self, model_id: str) -> EmbeddingModel:
        return self._accessor(Capability.EMBEDDING)(model_id)

    def speech(self, model_id: str) -> SpeechModel:
        return self._accessor(Capability.SPEECH)(model_id)

    def transcription(self, model_id: str) -> TranscriptionModel:
        return self._accessor(Capability.TRANSCRIPTION)(model_id)

    def image(self, model_id: str) -> ImageModel:
        return self._accessor(Capability.IMAGE)(model_id)

    def moderation(self, model_id: str) -> ModerationModel:
        return self._accessor(Capability.MODERATION)(model_id)

    def rerank(self, model_id: str) -> RerankModel:
        return self._accessor(Capability.RERANK)(model_id)

    def __repr__(self) -> str:
        return f"ProviderClient(id={self.id!r})"


def get_provider(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> ProviderClient:
    """Resolve a provider through ``registry`` (or the process-wide default).

    Never fails for unknown ids; see ``ProviderRegistry.get``.
    """
    if registry is None:
        registry = get_provider_registry()
    return ProviderClient(registry.get(provider_id, settings))


def _binder(
    capability: Capability,
    provider_id: str,
    settings: SettingsInput,
    registry: ProviderRegistry | None,
) -> Callable[[str], Any]:
    client = get_provider(provider_id, settings, registry=registry)
    if capability is Capability.LANGUAGE:
        return client.language
    return client._accessor(capability)


def get_provider_for_text(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], LanguageModel]:
    return _binder(Capability.LANGUAGE, provider_id, settings, registry)


def get_provider_for_embedding(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], EmbeddingModel]:
    """Return an embedding model binder.

    Raises:
        ProviderCapabilityError: If the provider has no embedding models.
    """
    return _binder(Capability.EMBEDDING, provider_id, settings, registry)


def get_provider_for_speech(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], SpeechModel]:
    return _binder(Capability.SPEECH, provider_id, settings, registry)


def get_provider_for_transcription(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], TranscriptionModel]:
    return _binder(Capability.TRANSCRIPTION, provider_id, settings, registry)


def get_provider_for_image(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], ImageModel]:
    return _binder(Capability.IMAGE, provider_id, settings, registry)


def get_provider_for_moderation(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], ModerationModel]:
    return _binder(Capability.MODERATION, provider_id, settings, registry)


def get_provider_for_rerank(
    provider_id: str,
    settings: SettingsInput = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Callable[[str], RerankModel]:
    return _binder(Capability.RERANK, provider_id, settings, registry)
