"""Capability type definitions.

A capability is one kind of AI operation a provider may offer. Providers are
compared by which model accessors they expose, so this module only names the
capabilities and describes them; it holds no per-vendor data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Capability(str, Enum):
    """AI capabilities a provider can expose.

    Each value matches the accessor on ``AIProvider`` that serves it:
    ``language`` -> ``language_model``, ``rerank`` -> ``rerank_model`` and so on.
    """

    LANGUAGE = "language"
    EMBEDDING = "embedding"
    SPEECH = "speech"
    TRANSCRIPTION = "transcription"
    IMAGE = "image"
    MODERATION = "moderation"
    RERANK = "rerank"

    @property
    def accessor(self) -> str:
        """Name of the ``AIProvider`` attribute serving this capability."""
        return f"{self.value}_model"


class ModelType(str, Enum):
    """Model categories as stored in model catalogs and configuration."""

    LLM = "llm"
    MODERATION = "moderation"
    RERANK = "rerank"
    SPEECH_TO_TEXT = "speech2text"
    TEXT_EMBEDDING = "text-embedding"
    TEXT_TO_IMAGE = "text2image"
    TTS = "tts"

    @property
    def capability(self) -> Capability:
        """Capability needed to serve a model of this type."""
        return _MODEL_TYPE_CAPABILITIES[self]


_MODEL_TYPE_CAPABILITIES: dict[ModelType, Capability] = {
    ModelType.LLM: Capability.LANGUAGE,
    ModelType.MODERATION: Capability.MODERATION,
    ModelType.RERANK: Capability.RERANK,
    ModelType.SPEECH_TO_TEXT: Capability.TRANSCRIPTION,
    ModelType.TEXT_EMBEDDING: Capability.EMBEDDING,
    ModelType.TEXT_TO_IMAGE: Capability.IMAGE,
    ModelType.TTS: Capability.SPEECH,
}


@dataclass(frozen=True)
class CapabilityDescription:
    """Human-facing name and description of a capability."""

    name: str
    description: str


CAPABILITY_DESCRIPTIONS: dict[Capability, CapabilityDescription] = {
    Capability.LANGUAGE: CapabilityDescription(
        "Language Model", "Text generation, chat and reasoning",
    ),
    Capability.EMBEDDING: CapabilityDescription(
        "Embedding Model", "Text vectorization for semantic search and similarity",
    ),
    Capability.SPEECH: CapabilityDescription(
        "Speech Synthesis (TTS)", "Convert text into spoken audio",
    ),
    Capability.TRANSCRIPTION: CapabilityDescription(
        "Speech Recognition (STT)", "Convert spoken audio into text",
    ),
    Capability.IMAGE: CapabilityDescription(
        "Image Generation", "Generate images from text prompts",
    ),
    Capability.MODERATION: CapabilityDescription(
        "Content Moderation", "Detect unsafe or policy-violating content",
    ),
    Capability.RERANK: CapabilityDescription(
        "Document Reranking", "Order documents by relevance to a query",
    ),
}


@dataclass
class ProviderCapabilities:
    """The set of capabilities one provider supports.

    Attributes:
        supported: Supported capabilities, language first.

    Example:
        caps = ProviderCapabilities([Capability.LANGUAGE, Capability.EMBEDDING])
        caps.supports(Capability.RERANK)  # False
    """

    supported: list[Capability] = field(default_factory=list)

    def supports(self, capability: Capability | str) -> bool:
        return Capability(capability) in self.supported

    def get_all(self) -> dict[Capability, bool]:
        """Map every known capability to whether it is supported."""
        return {cap: cap in self.supported for cap in Capability}

    def describe(self) -> list[CapabilityDescription]:
        return [CAPABILITY_DESCRIPTIONS[cap] for cap in self.supported]


# ──────────────────────────────────────────────────────────────
# Model features
# ──────────────────────────────────────────────────────────────


class ModelFeature(str, Enum):
    """Fine-grained features a single model may advertise in a catalog.

    Unlike capabilities these are not tied to an accessor; they describe what
    a language model accepts or produces once bound.
    """

    AGENT_THOUGHT = "agent-thought"
    AUDIO = "audio"
    DOCUMENT = "document"
    MULTI_TOOL_CALL = "multi-tool-call"
    STREAM_TOOL_CALL = "stream-tool-call"
    STRUCTURED_OUTPUT = "structured-output"
    TOOL_CALL = "tool-call"
    VIDEO = "video"
    VISION = "vision"


MODEL_FEATURE_DESCRIPTIONS: dict[ModelFeature, CapabilityDescription] = {
    ModelFeature.AGENT_THOUGHT: CapabilityDescription(
        "Agent Thought", "Exposes its reasoning process while working",
    ),
    ModelFeature.AUDIO: CapabilityDescription("Audio", "Audio input and output"),
    ModelFeature.DOCUMENT: CapabilityDescription(
        "Document", "Parses and understands document inputs",
    ),
    ModelFeature.MULTI_TOOL_CALL: CapabilityDescription(
        "Multiple Tool Calls", "Calls several tools in one turn",
    ),
    ModelFeature.STREAM_TOOL_CALL: CapabilityDescription(
        "Streaming Tool Calls", "Streams tool call arguments as they are produced",
    ),
    ModelFeature.STRUCTURED_OUTPUT: CapabilityDescription(
        "Structured Output", "Produces output matching a JSON Schema",
    ),
    ModelFeature.TOOL_CALL: CapabilityDescription("Tool Call", "Function and tool calling"),
    ModelFeature.VIDEO: CapabilityDescription("Video", "Understands video input"),
    ModelFeature.VISION: CapabilityDescription("Vision", "Understands image input"),
}


def get_all_model_features() -> list[ModelFeature]:
    return list(ModelFeature)


def get_model_features_with_descriptions() -> list[dict[str, str]]:
    """List every model feature as ``{"type", "name", "description"}`` dicts.

    The shape is meant for settings screens and model catalog APIs.
    """
    return [
        {
            "type": feature.value,
            "name": MODEL_FEATURE_DESCRIPTIONS[feature].name,
            "description": MODEL_FEATURE_DESCRIPTIONS[feature].description,
        }
        for feature in ModelFeature
    ]
