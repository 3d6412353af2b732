"""Provider contracts: settings, capability interfaces and result models.

Every vendor adapter subclasses ``AIProvider`` and binds model ids to model
clients through accessor methods (``language_model``, ``embedding_model``,
...). Accessors are pure: they return a client object without touching the
network. The client's ``do_*`` coroutine performs exactly one vendor request.

Result shapes are vendor-agnostic pydantic models so callers never see a
vendor's raw response layout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modelhub.infra.ai.capabilities.types import Capability, ProviderCapabilities

# ──────────────────────────────────────────────────────────────
# Settings
# ──────────────────────────────────────────────────────────────


class ProviderSettings(BaseModel):
    """Construction settings for a provider adapter.

    Only ``api_key``, ``base_url``, ``headers`` and ``timeout`` are common to
    every vendor. Vendor-specific options (Azure ``endpoint`` and
    ``api_version``, OpenAI ``organization``, generic adapter ``id``/``name``)
    are accepted as extra fields and read by the adapter that understands them.

    Attributes:
        api_key: Vendor API key; None defers any auth failure to the first call.
        base_url: Endpoint override; None means the vendor's public endpoint.
        headers: Extra HTTP headers sent on every request.
        timeout: Request timeout in seconds; None disables the timeout.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    api_key: str | None = None
    base_url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = None

    @field_validator("headers", mode="before")
    @classmethod
    def _empty_headers(cls, value: Any) -> Any:
        """An explicit ``None`` means no extra headers."""
        return {} if value is None else value

    def option(self, key: str, default: Any = None) -> Any:
        """Read a vendor-specific extra field."""
        return (self.model_extra or {}).get(key, default)


SettingsInput = ProviderSettings | Mapping[str, Any] | None


def coerce_settings(settings: SettingsInput) -> ProviderSettings:
    """Normalize ``None``, a mapping or a ``ProviderSettings`` into settings."""
    if settings is None:
        return ProviderSettings()
    if isinstance(settings, ProviderSettings):
        return settings
    return ProviderSettings.model_validate(dict(settings))


# ──────────────────────────────────────────────────────────────
# Language
# ──────────────────────────────────────────────────────────────


class ChatMessage(BaseModel):
    """A single conversation turn."""

    role: Literal["system", "user", "assistant"]
    content: str


class LanguageModelCallParams(BaseModel):
    """Parameters for a language model call."""

    messages: list[ChatMessage]
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stop: list[str] | None = None
    provider_options: dict[str, Any] = Field(default_factory=dict)


class Usage(BaseModel):
    """Token accounting reported by the vendor."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None
    reasoning_tokens: int | None = None
    cached_input_tokens: int | None = None


class LanguageModelResult(BaseModel):
    """Normalized response from a language model."""

    text: str
    reasoning: str | None = None
    finish_reason: str | None = None
    usage: Usage | None = None
    model: str | None = None
    response_id: str | None = None


class StreamPart(BaseModel):
    """One streamed chunk from a language model.

    ``text-delta`` and ``reasoning-delta`` carry ``text``; the final
    ``finish`` part carries ``finish_reason`` and ``usage``.
    """

    type: Literal["text-delta", "reasoning-delta", "finish"]
    text: str | None = None
    finish_reason: str | None = None
    usage: Usage | None = None


# ──────────────────────────────────────────────────────────────
# Embedding
# ──────────────────────────────────────────────────────────────


class EmbeddingParams(BaseModel):
    values: list[str]
    provider_options: dict[str, Any] = Field(default_factory=dict)


class EmbeddingResult(BaseModel):
    """Embedding vectors in the same order as the input values."""

    embeddings: list[list[float]]
    usage: Usage | None = None


# ──────────────────────────────────────────────────────────────
# Image
# ──────────────────────────────────────────────────────────────


ImageResponseFormat = Literal["url", "b64_json"]


class ImageGenerateParams(BaseModel):
    prompt: str
    n: int | None = None
    size: str | None = None
    quality: str | None = None
    style: str | None = None
    response_format: ImageResponseFormat | None = None
    provider_options: dict[str, Any] = Field(default_factory=dict)


class GeneratedImage(BaseModel):
    """One generated image, as a URL or as base64 data."""

    url: str | None = None
    b64_json: str | None = None
    revised_prompt: str | None = None


class ImageGenerateResult(BaseModel):
    images: list[GeneratedImage]


# ──────────────────────────────────────────────────────────────
# Speech
# ──────────────────────────────────────────────────────────────


class SpeechGenerateParams(BaseModel):
    text: str
    voice: str | None = None
    speed: float | None = None
    response_format: str | None = None
    provider_options: dict[str, Any] = Field(default_factory=dict)


class SpeechGenerateResult(BaseModel):
    """Synthesized audio bytes and their container format."""

    audio: bytes
    format: str


# ──────────────────────────────────────────────────────────────
# Transcription
# ──────────────────────────────────────────────────────────────


class TranscriptionParams(BaseModel):
    audio: bytes
    language: str | None = None
    prompt: str | None = None
    response_format: str | None = None
    temperature: float | None = None
    filename: str = "audio.mp3"
    media_type: str = "audio/mpeg"
    provider_options: dict[str, Any] = Field(default_factory=dict)


class TranscriptionSegment(BaseModel):
    id: int
    start: float
    end: float
    text: str


class TranscriptionResult(BaseModel):
    text: str
    language: str | None = None
    duration: float | None = None
    segments: list[TranscriptionSegment] | None = None


# ──────────────────────────────────────────────────────────────
# Moderation
# ──────────────────────────────────────────────────────────────


class ModerationParams(BaseModel):
    input: str | list[str]


class ModerationResultItem(BaseModel):
    """Moderation verdict for one input.

    Category keys follow the OpenAI taxonomy, e.g. ``hate``,
    ``self-harm/intent``, ``violence/graphic``.
    """

    flagged: bool
    categories: dict[str, bool] = Field(default_factory=dict)
    category_scores: dict[str, float] = Field(default_factory=dict)


class ModerationResult(BaseModel):
    results: list[ModerationResultItem]
    model: str


# ──────────────────────────────────────────────────────────────
# Rerank
# ──────────────────────────────────────────────────────────────


class RerankParams(BaseModel):
    query: str
    documents: list[str]
    top_n: int | None = None
    return_documents: bool | None = None
    provider_options: dict[str, Any] = Field(default_factory=dict)


class RerankResultItem(BaseModel):
    """Relevance of one input document; ``index`` points into the request."""

    index: int
    relevance_score: float
    document: str | None = None


class RerankResult(BaseModel):
    results: list[RerankResultItem]
    model: str
    usage: Usage | None = None


# ──────────────────────────────────────────────────────────────
# Model contracts
# ──────────────────────────────────────────────────────────────


class _BoundModel(ABC):
    """A model client bound to one model id of one provider."""

    def __init__(self, model_id: str, provider: str) -> None:
        self.model_id = model_id
        self.provider = provider

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider!r}, model_id={self.model_id!r})"


class LanguageModel(_BoundModel):
    @abstractmethod
    async def do_generate(self, params: LanguageModelCallParams) -> LanguageModelResult:
        """Run one non-streaming completion."""

    @abstractmethod
    def do_stream(self, params: LanguageModelCallParams) -> AsyncIterator[StreamPart]:
        """Stream one completion; the last part has type ``finish``."""


class EmbeddingModel(_BoundModel):
    @abstractmethod
    async def do_embed(self, params: EmbeddingParams) -> EmbeddingResult: ...


class ImageModel(_BoundModel):
    @abstractmethod
    async def do_generate(self, params: ImageGenerateParams) -> ImageGenerateResult: ...


class SpeechModel(_BoundModel):
    @abstractmethod
    async def do_generate(self, params: SpeechGenerateParams) -> SpeechGenerateResult: ...


class TranscriptionModel(_BoundModel):
    @abstractmethod
    async def do_transcribe(self, params: TranscriptionParams) -> TranscriptionResult: ...


class ModerationModel(_BoundModel):
    @abstractmethod
    async def do_moderate(self, params: ModerationParams) -> ModerationResult: ...


class RerankModel(_BoundModel):
    @abstractmethod
    async def do_rerank(self, params: RerankParams) -> RerankResult: ...


# ──────────────────────────────────────────────────────────────
# Provider contract
# ──────────────────────────────────────────────────────────────


class AIProvider(ABC):
    """Base class for all provider adapters.

    ``language_model`` is mandatory. Every other accessor is ``None`` on this
    class; an adapter that supports the capability defines a method with the
    same name. Checking ``provider.rerank_model is None`` is therefore how a
    caller asks whether a capability exists.

    Example:
        provider = OpenAIProvider({"api_key": "sk-..."})
        model = provider.language_model("gpt-4o-mini")  # no network I/O
        result = await model.do_generate(params)
    """

    id: str
    name: str

    embedding_model: ClassVar[Callable[[str], EmbeddingModel] | None] = None
    speech_model: ClassVar[Callable[[str], SpeechModel] | None] = None
    transcription_model: ClassVar[Callable[[str], TranscriptionModel] | None] = None
    image_model: ClassVar[Callable[[str], ImageModel] | None] = None
    moderation_model: ClassVar[Callable[[str], ModerationModel] | None] = None
    rerank_model: ClassVar[Callable[[str], RerankModel] | None] = None

    @abstractmethod
    def language_model(self, model_id: str) -> LanguageModel:
        """Bind a language model id."""

    def __call__(self, model_id: str) -> LanguageModel:
        return self.language_model(model_id)

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Capabilities derived from the accessors this adapter exposes."""
        return ProviderCapabilities(
            [cap for cap in Capability if getattr(self, cap.accessor, None) is not None],
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"
